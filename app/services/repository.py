"""
Data-access interface consumed by the matcher, with a MongoDB implementation.
"""
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as SchemaError
from pymongo import ReplaceOne
from pymongo.errors import PyMongoError

from app.models.models import Candidate, CandidateSkill, Job
from app.utils.exceptions import FetchError, PersistError
from app.utils.logging_config import get_logger

logger = get_logger(__name__)


class MatchRepository:
    """The four operations the matcher needs from storage."""

    async def get_job(self, job_id: str) -> Optional[Job]:
        raise NotImplementedError

    async def list_candidates(self) -> List[Candidate]:
        raise NotImplementedError

    async def list_skills(self, candidate_id: str) -> List[CandidateSkill]:
        raise NotImplementedError

    async def upsert_matches(self, records: List[Dict[str, Any]]) -> None:
        """Write records keyed by (candidate_id, job_id), replacing existing rows."""
        raise NotImplementedError


class MongoMatchRepository(MatchRepository):
    """MatchRepository over the motor collections in app.services.db"""

    def __init__(self, jobs_coll, candidates_coll, skills_coll, matches_coll):
        self.jobs_coll = jobs_coll
        self.candidates_coll = candidates_coll
        self.skills_coll = skills_coll
        self.matches_coll = matches_coll

    async def get_job(self, job_id: str) -> Optional[Job]:
        try:
            doc = await self.jobs_coll.find_one({"id": job_id})
        except PyMongoError as e:
            logger.error(f"Job lookup failed for {job_id}: {e}")
            raise FetchError("Failed to fetch job", collection="jobs", cause=e) from e
        if not doc:
            return None
        try:
            return Job(**doc)
        except SchemaError as e:
            logger.error(f"Stored job {job_id} is malformed: {e}")
            raise FetchError("Stored job is malformed", collection="jobs", cause=e) from e

    async def list_candidates(self) -> List[Candidate]:
        try:
            docs = await self.candidates_coll.find({}).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Candidate fetch failed: {e}")
            raise FetchError("Failed to fetch candidates", collection="candidates", cause=e) from e
        try:
            return [Candidate(**doc) for doc in docs]
        except SchemaError as e:
            logger.error(f"Stored candidate is malformed: {e}")
            raise FetchError("Stored candidate is malformed", collection="candidates", cause=e) from e

    async def list_skills(self, candidate_id: str) -> List[CandidateSkill]:
        try:
            docs = await self.skills_coll.find({"candidate_id": candidate_id}).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Skill fetch failed for candidate {candidate_id}: {e}")
            raise FetchError(
                f"Failed to fetch skills for candidate {candidate_id}",
                collection="candidate_skills",
                cause=e,
            ) from e
        try:
            return [CandidateSkill(**doc) for doc in docs]
        except SchemaError as e:
            logger.error(f"Stored skill for candidate {candidate_id} is malformed: {e}")
            raise FetchError(
                f"Stored skill for candidate {candidate_id} is malformed",
                collection="candidate_skills",
                cause=e,
            ) from e

    async def upsert_matches(self, records: List[Dict[str, Any]]) -> None:
        if not records:
            return
        ops = [
            ReplaceOne(
                {"candidate_id": r["candidate_id"], "job_id": r["job_id"]},
                r,
                upsert=True,
            )
            for r in records
        ]
        try:
            result = await self.matches_coll.bulk_write(ops, ordered=True)
        except PyMongoError as e:
            logger.error(f"Match upsert failed for {len(records)} records: {e}")
            raise PersistError("Failed to save matches", record_count=len(records), cause=e) from e
        logger.debug(
            f"Upserted matches: {result.upserted_count} inserted, {result.modified_count} replaced"
        )


def get_repository() -> MatchRepository:
    """FastAPI dependency returning the MongoDB-backed repository"""
    from app.services.db import jobs_coll, candidates_coll, skills_coll, matches_coll

    return MongoMatchRepository(jobs_coll, candidates_coll, skills_coll, matches_coll)
