from datetime import datetime
from typing import List
import uuid

from fastapi import APIRouter, Request
from pymongo import DESCENDING, ReturnDocument

from app.services.db import candidates_coll, skills_coll, matches_coll
from app.models.models import CandidateSkill, CandidateWithSkills
from app.models.schemas import CandidateCreate, CandidateUpdate, SkillInput
from app.utils.logging_config import get_logger, PerformanceMonitor
from app.utils.exceptions import NotFoundError, ExceptionContext

router = APIRouter()
logger = get_logger(__name__)


def _skill_docs(candidate_id: str, skills: List[SkillInput]) -> List[dict]:
    now = datetime.utcnow()
    return [
        {
            "id": str(uuid.uuid4()),
            "candidate_id": candidate_id,
            "skill_name": s.skill_name.strip(),
            "proficiency_level": s.proficiency_level,
            "years_of_experience": s.years_of_experience,
            "created_at": now,
        }
        for s in skills
        if s.skill_name.strip()
    ]


async def _with_skills(candidate: dict) -> CandidateWithSkills:
    skills = await skills_coll.find({"candidate_id": candidate["id"]}).to_list(length=None)
    return CandidateWithSkills(**candidate, skills=[CandidateSkill(**s) for s in skills])


@router.post("/", response_model=CandidateWithSkills)
async def create_candidate(payload: CandidateCreate, request: Request):
    """Create a candidate together with its skill list"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    candidate_id = str(uuid.uuid4())
    now = datetime.utcnow()

    candidate_data = payload.model_dump(exclude={"skills"})
    candidate_data.update({
        "id": candidate_id,
        "created_at": now,
        "updated_at": now,
    })
    skill_data = _skill_docs(candidate_id, payload.skills)

    with ExceptionContext("create_candidate", logger, request_id=request_id, candidate_id=candidate_id):
        await candidates_coll.insert_one(dict(candidate_data))
        if skill_data:
            await skills_coll.insert_many([dict(s) for s in skill_data])

    logger.info(f"Created candidate {candidate_id} with {len(skill_data)} skills", extra={"request_id": request_id})
    return CandidateWithSkills(**candidate_data, skills=[CandidateSkill(**s) for s in skill_data])


@router.get("/all", response_model=List[CandidateWithSkills])
async def list_all_candidates(request: Request):
    """Get all candidates with their skills, newest first"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with PerformanceMonitor("list_all_candidates", logger):
        with ExceptionContext("fetch_candidates", logger, request_id=request_id):
            candidates = await candidates_coll.find({}).sort("created_at", DESCENDING).to_list(length=None)
            return [await _with_skills(c) for c in candidates]


@router.get("/{candidate_id}", response_model=CandidateWithSkills)
async def get_candidate(candidate_id: str, request: Request):
    """Fetch a candidate by ID"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with ExceptionContext("fetch_candidate_by_id", logger, request_id=request_id, candidate_id=candidate_id):
        candidate = await candidates_coll.find_one({"id": candidate_id})
        if not candidate:
            raise NotFoundError("Candidate not found", resource="candidate", resource_id=candidate_id)
        return await _with_skills(candidate)


@router.patch("/{candidate_id}", response_model=CandidateWithSkills)
async def update_candidate(candidate_id: str, payload: CandidateUpdate, request: Request):
    """Update candidate fields; a skills list replaces the stored one"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    changes = payload.model_dump(exclude_unset=True, exclude={"skills"})
    changes["updated_at"] = datetime.utcnow()

    with ExceptionContext("update_candidate", logger, request_id=request_id, candidate_id=candidate_id):
        candidate = await candidates_coll.find_one_and_update(
            {"id": candidate_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not candidate:
            raise NotFoundError("Candidate not found", resource="candidate", resource_id=candidate_id)

        if payload.skills is not None:
            # Insert the new list first so a failed insert leaves the old one intact
            skill_data = _skill_docs(candidate_id, payload.skills)
            if skill_data:
                await skills_coll.insert_many(skill_data)
            await skills_coll.delete_many({
                "candidate_id": candidate_id,
                "id": {"$nin": [s["id"] for s in skill_data]},
            })

        logger.info(f"Updated candidate {candidate_id}", extra={"request_id": request_id})
        return await _with_skills(candidate)


@router.delete("/{candidate_id}")
async def delete_candidate(candidate_id: str, request: Request):
    """Delete a candidate along with its skills and matches"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with ExceptionContext("delete_candidate", logger, request_id=request_id, candidate_id=candidate_id):
        result = await candidates_coll.delete_one({"id": candidate_id})
        if result.deleted_count == 0:
            raise NotFoundError("Candidate not found", resource="candidate", resource_id=candidate_id)
        await skills_coll.delete_many({"candidate_id": candidate_id})
        await matches_coll.delete_many({"candidate_id": candidate_id})

    logger.info(f"Deleted candidate {candidate_id}", extra={"request_id": request_id})
    return {"id": candidate_id, "deleted": True}
