"""
Candidate Routes (employer only)

GET /candidates - List the talent pool, most recently updated first
GET /candidates/{candidate_id} - Get one candidate
PUT /candidates/{candidate_id} - Edit a candidate (e.g. status)
DELETE /candidates/{candidate_id} - Delete a candidate and its match history
"""

from typing import List

from fastapi import APIRouter, Depends

from zhide.api.deps import get_resume_service, get_storage
from zhide.core.auth import get_current_employer
from zhide.core.errors import NotFound
from zhide.core.logging import get_logger
from zhide.schemas.schemas import Candidate, CandidateUpdate, MessageResponse, Session
from zhide.services.resume_service import ResumeService
from zhide.services.storage_service import StorageAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/candidates", tags=["Candidates"])


@router.get("", response_model=List[Candidate])
def list_candidates(
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage)
):
    return storage.list_candidates()


@router.get("/{candidate_id}", response_model=Candidate)
def get_candidate(
    candidate_id: str,
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage)
):
    candidate = storage.get_candidate(candidate_id)
    if candidate is None:
        raise NotFound("Candidate not found")
    return candidate


@router.put("/{candidate_id}", response_model=Candidate)
def update_candidate(
    candidate_id: str,
    update: CandidateUpdate,
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage),
    service: ResumeService = Depends(get_resume_service)
):
    """Update a candidate. Only provided fields are updated."""
    candidate = storage.get_candidate(candidate_id)
    if candidate is None:
        raise NotFound("Candidate not found")
    return service.update_profile(candidate, update)


@router.delete("/{candidate_id}", response_model=MessageResponse)
def delete_candidate(
    candidate_id: str,
    session: Session = Depends(get_current_employer),
    storage: StorageAdapter = Depends(get_storage)
):
    """Hard-delete a candidate. Its cached matches go with it."""
    if not storage.delete_candidate(candidate_id):
        raise NotFound("Candidate not found")
    logger.info("Candidate %s deleted by %s", candidate_id, session.user_id)
    return MessageResponse(message="Candidate deleted successfully")
