"""
Matching Routes

POST /match/run - Match a candidate against active jobs (AI, cached)

Candidates always match their own profile; employers pass candidate_id.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from zhide.api.deps import get_matching_service, get_storage
from zhide.core.auth import require_role
from zhide.core.errors import NotFound, ValidationError
from zhide.schemas.schemas import JobMatch, MatchRunRequest, Session, UserRole
from zhide.services.matching_service import MatchingService
from zhide.services.storage_service import StorageAdapter

router = APIRouter(prefix="/match", tags=["Matching"])

can_match = require_role(UserRole.employer, UserRole.candidate)


@router.post("/run", response_model=List[JobMatch])
def run_match(
    body: Optional[MatchRunRequest] = None,
    session: Session = Depends(can_match),
    storage: StorageAdapter = Depends(get_storage),
    service: MatchingService = Depends(get_matching_service)
):
    """
    Get AI job matches, sorted by score descending.

    Cached results are returned unless force_refresh is set.
    An AI failure yields an empty list, not an error.
    """
    body = body or MatchRunRequest()
    if session.role == UserRole.candidate:
        candidate = storage.get_candidate_by_user(session.user_id)
        if candidate is None:
            raise NotFound("Candidate profile not found")
        candidate_id = candidate.id
    else:
        if not body.candidate_id:
            raise ValidationError("candidate_id required")
        if storage.get_candidate(body.candidate_id) is None:
            raise NotFound("Candidate not found")
        candidate_id = body.candidate_id

    return service.get_matches(candidate_id, force_refresh=body.force_refresh)
