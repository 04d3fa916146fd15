"""
Job Routes

GET /jobs - List active jobs, newest first
GET /jobs/{job_id} - Get job details
POST /jobs - Create job posting (employer only)
PUT /jobs/{job_id} - Update job (owning employer only)
DELETE /jobs/{job_id} - Delete job (owning employer only)
"""

from typing import List

from fastapi import APIRouter, Depends

from zhide.api.deps import get_storage
from zhide.core.auth import get_current_employer, get_current_session
from zhide.core.errors import NotFound
from zhide.core.logging import get_logger
from zhide.schemas.schemas import Job, JobCreate, JobUpdate, MessageResponse, Session
from zhide.services.storage_service import StorageAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _owned_job(storage: StorageAdapter, job_id: str, session: Session) -> Job:
    job = storage.get_job(job_id)
    # Seeded / crawled jobs have no recruiter and are editable by any employer
    if job is None or (job.recruiter_id and job.recruiter_id != session.user_id):
        raise NotFound("Job not found or access denied")
    return job


@router.get("", response_model=List[Job])
def list_jobs(
    session: Session = Depends(get_current_session),
    storage: StorageAdapter = Depends(get_storage)
):
    """List all active job postings, newest first."""
    return storage.list_jobs(active_only=True)


@router.get("/{job_id}", response_model=Job)
def get_job(
    job_id: str,
    session: Session = Depends(get_current_session),
    storage: StorageAdapter = Depends(get_storage)
):
    """Get details of a specific job."""
    job = storage.get_job(job_id)
    if job is None:
        raise NotFound("Job not found")
    return job


@router.post("", response_model=Job, status_code=201)
def create_job(
    body: JobCreate,
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage)
):
    """Create a new job posting. Only employers can create jobs."""
    job = storage.save_job(Job(**body.model_dump(), recruiter_id=session.user_id))
    logger.info("Job %s created by %s", job.id, session.user_id)
    return job


@router.put("/{job_id}", response_model=Job)
def update_job(
    job_id: str,
    update: JobUpdate,
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage)
):
    """Update a job posting. Only provided fields are updated."""
    job = _owned_job(storage, job_id, session)
    return storage.save_job(job.model_copy(update=update.changes()))


@router.delete("/{job_id}", response_model=MessageResponse)
def delete_job(
    job_id: str,
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage)
):
    """Delete a job posting. Cached matches pointing to it are dropped on read."""
    _owned_job(storage, job_id, session)
    storage.delete_job(job_id)
    return MessageResponse(message="Job deleted successfully")
