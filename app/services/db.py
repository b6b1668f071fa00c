import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING
import os
from dotenv import load_dotenv

from app.utils.logging_config import get_logger

logger = get_logger(__name__)

# Load environment variables from .env
load_dotenv()

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "talent_match")

logger.info(f"Initializing MongoDB connection to database: {DB_NAME}")

try:
    client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_DETAILS)
    db = client[DB_NAME]
    logger.info("MongoDB client initialized successfully")
except Exception as e:
    logger.error(f"Failed to initialize MongoDB client: {e}")
    raise

# Collections
jobs_coll = db["jobs"]
candidates_coll = db["candidates"]
skills_coll = db["candidate_skills"]
matches_coll = db["candidate_job_matches"]


async def _ensure_index(coll, keys, label: str, **kwargs):
    try:
        await coll.create_index(keys, **kwargs)
        logger.debug(f"Created index on {label}")
    except Exception as e:
        if "already exists" in str(e).lower():
            logger.debug(f"Index on {label} already exists")
        else:
            logger.warning(f"Could not create index on {label}: {e}")


async def init_indexes():
    """Index initialization for collections."""
    logger.info("Starting database index initialization")

    await _ensure_index(jobs_coll, [("id", ASCENDING)], "jobs.id", unique=True)
    await _ensure_index(jobs_coll, [("status", ASCENDING)], "jobs.status")
    await _ensure_index(candidates_coll, [("id", ASCENDING)], "candidates.id", unique=True)
    await _ensure_index(skills_coll, [("candidate_id", ASCENDING)], "candidate_skills.candidate_id")

    # One match row per (candidate, job); re-runs replace it
    await _ensure_index(
        matches_coll,
        [("candidate_id", ASCENDING), ("job_id", ASCENDING)],
        "candidate_job_matches.(candidate_id, job_id)",
        unique=True,
    )
    await _ensure_index(
        matches_coll,
        [("job_id", ASCENDING), ("match_score", DESCENDING)],
        "candidate_job_matches.(job_id, match_score)",
    )

    logger.info("Database index initialization completed")
