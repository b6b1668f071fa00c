import asyncio

from fastapi import APIRouter

from app.services.db import candidates_coll, jobs_coll, matches_coll
from app.models.schemas import DashboardStats
from app.utils.logging_config import get_logger
from app.utils.exceptions import ExceptionContext

router = APIRouter()
logger = get_logger(__name__)


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats():
    """Headline counts for the recruiter dashboard"""
    with ExceptionContext("dashboard_stats", logger):
        total_candidates, open_jobs, total_matches, shortlisted = await asyncio.gather(
            candidates_coll.count_documents({}),
            jobs_coll.count_documents({"status": "open"}),
            matches_coll.count_documents({}),
            matches_coll.count_documents({"status": "shortlisted"}),
        )

    return DashboardStats(
        total_candidates=total_candidates,
        open_jobs=open_jobs,
        total_matches=total_matches,
        shortlisted=shortlisted,
    )
