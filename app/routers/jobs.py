from datetime import datetime
from typing import List
import uuid

from fastapi import APIRouter, Query, Request
from pymongo import DESCENDING, ReturnDocument

from app.services.db import jobs_coll, matches_coll
from app.models.models import Job, JobStatus
from app.models.schemas import JobCreate, JobUpdate
from app.utils.logging_config import get_logger
from app.utils.exceptions import NotFoundError, ValidationError, ExceptionContext

router = APIRouter()
logger = get_logger(__name__)


@router.post("/", response_model=Job)
async def create_job(payload: JobCreate, request: Request):
    """Post a new job; jobs always start out open"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    now = datetime.utcnow()

    job_data = payload.model_dump()
    job_data.update({
        "id": str(uuid.uuid4()),
        "status": "open",
        "created_at": now,
        "updated_at": now,
    })

    with ExceptionContext("create_job", logger, request_id=request_id):
        await jobs_coll.insert_one(dict(job_data))

    logger.info(f"Created job {job_data['id']}: {payload.title} at {payload.company}", extra={"request_id": request_id})
    return Job(**job_data)


@router.get("/all", response_model=List[Job])
async def list_all_jobs():
    """Get all jobs, newest first"""
    cursor = jobs_coll.find({}).sort("created_at", DESCENDING)
    jobs = await cursor.to_list(length=None)
    return [Job(**job) for job in jobs]


@router.get("/status", response_model=List[Job])
async def list_jobs_by_status(status: JobStatus = Query(..., description="Job status: 'open', 'closed' or 'on-hold'")):
    """Get all jobs with a specific lifecycle status"""
    cursor = jobs_coll.find({"status": status}).sort("created_at", DESCENDING)
    jobs = await cursor.to_list(length=None)
    return [Job(**job) for job in jobs]


@router.get("/{job_id}", response_model=Job)
async def get_job(job_id: str):
    """Fetch a job by ID"""
    job = await jobs_coll.find_one({"id": job_id})
    if not job:
        raise NotFoundError("Job not found", resource="job", resource_id=job_id)
    return Job(**job)


@router.patch("/{job_id}", response_model=Job)
async def update_job(job_id: str, payload: JobUpdate, request: Request):
    """Update job fields, including its lifecycle status"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update", field="body")
    changes["updated_at"] = datetime.utcnow()
    query = {"id": job_id}

    with ExceptionContext("update_job", logger, request_id=request_id, job_id=job_id):
        band_changed = "min_experience" in changes or "max_experience" in changes
        if band_changed:
            stored = await jobs_coll.find_one({"id": job_id})
            if not stored:
                raise NotFoundError("Job not found", resource="job", resource_id=job_id)
            stored_min = stored.get("min_experience")
            stored_max = stored.get("max_experience")
            min_exp = changes.get("min_experience", stored_min or 0)
            max_exp = changes["max_experience"] if "max_experience" in changes else stored_max
            if max_exp is not None and max_exp < min_exp:
                raise ValidationError(
                    "max_experience must not be less than min_experience",
                    field="max_experience",
                    value=max_exp,
                    details={"min_experience": min_exp},
                )
            # Write only if the band checked above is still the stored one
            query.update({"min_experience": stored_min, "max_experience": stored_max})

        job = await jobs_coll.find_one_and_update(
            query,
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not job and band_changed:
            raise ValidationError("Job experience band changed during update, retry", field="min_experience")
        if not job:
            raise NotFoundError("Job not found", resource="job", resource_id=job_id)

    logger.info(f"Updated job {job_id}: {sorted(changes)}", extra={"request_id": request_id})
    return Job(**job)


@router.delete("/{job_id}")
async def delete_job(job_id: str, request: Request):
    """Delete a job and every match recorded against it"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with ExceptionContext("delete_job", logger, request_id=request_id, job_id=job_id):
        result = await jobs_coll.delete_one({"id": job_id})
        if result.deleted_count == 0:
            raise NotFoundError("Job not found", resource="job", resource_id=job_id)
        removed = await matches_coll.delete_many({"job_id": job_id})

    logger.info(f"Deleted job {job_id} and {removed.deleted_count} matches", extra={"request_id": request_id})
    return {"id": job_id, "deleted": True}
