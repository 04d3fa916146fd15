"""
Resume & Profile Routes

POST /resume/upload - Upload resume text or base64 document, AI parses it
POST /resume/upload-file - Upload resume file (PDF/DOCX/TXT)
GET /profile/me - Get own candidate profile (null if none yet)
PUT /profile/me - Edit own candidate profile
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from zhide.api.deps import get_resume_service, get_storage
from zhide.core.auth import get_current_candidate, get_current_session, require_role
from zhide.core.errors import NotFound, ValidationError
from zhide.schemas.schemas import (
    Candidate,
    CandidateUpdate,
    ResumeUploadRequest,
    Session,
    UserRole,
)
from zhide.services.ai_gateway import ResumeInput
from zhide.services.resume_service import ResumeService
from zhide.services.storage_service import StorageAdapter
from zhide.utils.file_upload import extract_text_from_upload

router = APIRouter(tags=["Profile"])

can_upload = require_role(UserRole.employer, UserRole.candidate)


@router.post("/resume/upload", response_model=Candidate)
def upload_resume(
    body: ResumeUploadRequest,
    session: Session = Depends(can_upload),
    service: ResumeService = Depends(get_resume_service)
):
    """
    Upload a resume and parse it with AI.

    Send either resume_text or document_base64 + mime_type.
    Candidates update their own profile; employers add to the talent pool.
    If AI parsing fails a placeholder profile is saved instead.
    """
    if not (body.resume_text and body.resume_text.strip()) and not body.document_base64:
        raise ValidationError("Resume text required")

    resume = ResumeInput(
        text=body.resume_text,
        document_base64=body.document_base64,
        mime_type=body.mime_type
    )
    return service.upload_resume(session, resume)


@router.post("/resume/upload-file", response_model=Candidate)
async def upload_resume_file(
    file: UploadFile = File(...),
    session: Session = Depends(can_upload),
    service: ResumeService = Depends(get_resume_service)
):
    """
    Upload resume file (PDF, DOCX, or TXT). Max 5MB.

    Text is extracted locally, then parsed with AI like /resume/upload.
    """
    text, _ = await extract_text_from_upload(file)
    return await run_in_threadpool(service.upload_resume, session, ResumeInput(text=text))


@router.get("/profile/me", response_model=Optional[Candidate])
def get_my_profile(
    session: Session = Depends(get_current_session),
    storage: StorageAdapter = Depends(get_storage)
):
    """Get the caller's own candidate profile, or null."""
    if session.user_id is None:
        return None
    return storage.get_candidate_by_user(session.user_id)


@router.put("/profile/me", response_model=Candidate)
def update_my_profile(
    update: CandidateUpdate,
    session: Session = Depends(get_current_candidate),
    storage: StorageAdapter = Depends(get_storage),
    service: ResumeService = Depends(get_resume_service)
):
    """Update own profile. Only provided fields are updated."""
    candidate = storage.get_candidate_by_user(session.user_id)
    if candidate is None:
        raise NotFound("Candidate profile not found. Upload a resume first.")
    return service.update_profile(candidate, update)
