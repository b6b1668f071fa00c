from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Request
from pymongo import DESCENDING, ReturnDocument

from app.services.db import matches_coll, candidates_coll
from app.services.matching import generate_matches
from app.services.repository import MatchRepository, get_repository
from app.models.models import Candidate, CandidateJobMatch, MatchWithCandidate
from app.models.schemas import MatchRunResponse, MatchStatusUpdate
from app.utils.logging_config import get_logger, PerformanceMonitor
from app.utils.exceptions import NotFoundError, ExceptionContext

router = APIRouter()
logger = get_logger(__name__)


@router.post("/jobs/{job_id}", response_model=MatchRunResponse)
async def generate_matches_for_job(
    job_id: str,
    request: Request,
    repository: MatchRepository = Depends(get_repository),
):
    """Score every candidate against the job and store the results as suggestions."""
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.info(f"Generating matches for job {job_id}", extra={"request_id": request_id})

    with PerformanceMonitor(f"generate_matches[{job_id}]", logger, threshold_ms=2000):
        results, saved = await generate_matches(job_id, repository)

    return MatchRunResponse(job_id=job_id, count=len(results), saved=saved, matches=results)


@router.get("/jobs/{job_id}", response_model=List[MatchWithCandidate])
async def list_matches_for_job(job_id: str, request: Request):
    """Stored matches for a job with their candidates, best first"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with ExceptionContext("list_matches_for_job", logger, request_id=request_id, job_id=job_id):
        matches = await matches_coll.find({"job_id": job_id}).sort("match_score", DESCENDING).to_list(length=None)
        candidate_ids = [m["candidate_id"] for m in matches]
        candidates = {}
        if candidate_ids:
            docs = await candidates_coll.find({"id": {"$in": candidate_ids}}).to_list(length=None)
            candidates = {c["id"]: Candidate(**c) for c in docs}

    return [
        MatchWithCandidate(**m, candidate=candidates.get(m["candidate_id"]))
        for m in matches
    ]


@router.patch("/{match_id}/status", response_model=CandidateJobMatch)
async def update_match_status(match_id: str, payload: MatchStatusUpdate, request: Request):
    """Move a match through the recruiting workflow"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with ExceptionContext("update_match_status", logger, request_id=request_id, match_id=match_id):
        match = await matches_coll.find_one_and_update(
            {"id": match_id},
            {"$set": {"status": payload.status, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not match:
            raise NotFoundError("Match not found", resource="match", resource_id=match_id)

    logger.info(f"Match {match_id} moved to {payload.status}", extra={"request_id": request_id})
    return CandidateJobMatch(**match)
