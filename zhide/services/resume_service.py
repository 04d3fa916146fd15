"""
Resume Service - resume upload workflow.

1. Parse the resume with the AI Gateway
2. Fill missing fields with placeholders (a failed parse yields a placeholder profile)
3. Upsert the Candidate through the Storage Adapter

Candidate accounts own exactly one profile, so a re-upload updates it in place.
Employer uploads add a new candidate to the talent pool every time.
"""

from typing import Optional

from zhide.core.errors import Forbidden, ParseError
from zhide.core.logging import get_logger
from zhide.schemas.schemas import (
    Candidate,
    CandidateStatus,
    CandidateUpdate,
    ParsedResume,
    Session,
    UserRole,
)
from zhide.services.ai_gateway import AIGateway, ResumeInput
from zhide.services.storage_service import StorageAdapter

logger = get_logger(__name__)


# Placeholders used when the AI omits a field or parsing fails
PLACEHOLDER_NAME = "未命名候选人"
PLACEHOLDER_TITLE = "待定职位"
PLACEHOLDER_EDUCATION = "学历不详"
PLACEHOLDER_SALARY = "面议"
PLACEHOLDER_SUMMARY = "AI自动解析简历"


def candidate_from_parsed(parsed: Optional[ParsedResume], base: Optional[Candidate] = None) -> Candidate:
    """
    Build a full Candidate from a parse result.

    Args:
        parsed: AI output, or None when parsing failed
        base: Existing profile to update (keeps id, owner and status)
    """
    fields = {
        "name": PLACEHOLDER_NAME,
        "title": PLACEHOLDER_TITLE,
        "experience_years": 0,
        "education": PLACEHOLDER_EDUCATION,
        "skills": [],
        "current_salary": PLACEHOLDER_SALARY,
        "target_salary": PLACEHOLDER_SALARY,
        "summary": PLACEHOLDER_SUMMARY,
        "email": None,
        "phone": None,
    }
    if parsed is not None:
        fields.update({
            "name": (parsed.name or "").strip() or PLACEHOLDER_NAME,
            "title": (parsed.title or "").strip() or PLACEHOLDER_TITLE,
            "experience_years": parsed.experience_years or 0,
            "education": (parsed.education or "").strip() or PLACEHOLDER_EDUCATION,
            "skills": parsed.skills,
            "current_salary": (parsed.current_salary or "").strip() or PLACEHOLDER_SALARY,
            "target_salary": (parsed.target_salary or "").strip() or PLACEHOLDER_SALARY,
            "summary": (parsed.summary or "").strip() or PLACEHOLDER_SUMMARY,
            "email": parsed.email or None,
            "phone": parsed.phone or None,
        })

    if base is not None:
        if parsed is None:
            # Keep the existing profile rather than overwrite it with placeholders
            return base
        return base.model_copy(update=fields)
    return Candidate(status=CandidateStatus.unemployed, **fields)


class ResumeService:
    """
    Complete resume upload workflow for both roles.
    """

    def __init__(self, storage: StorageAdapter, gateway: AIGateway):
        self.storage = storage
        self.gateway = gateway

    def upload_resume(self, session: Session, resume: ResumeInput) -> Candidate:
        """
        Parse a resume and store the resulting profile.

        Returns:
            The saved Candidate (a placeholder profile if AI parsing failed)

        Raises:
            Forbidden: guests cannot upload resumes
            ValidationError: the document could not be read
        """
        if session.role == UserRole.guest:
            raise Forbidden("Guests cannot upload resumes")

        try:
            parsed = self.gateway.parse_resume(resume)
        except ParseError as e:
            logger.warning("Resume parsing failed, using placeholder profile: %s", e.detail)
            parsed = None

        if session.role == UserRole.candidate:
            existing = self.storage.get_candidate_by_user(session.user_id)
            candidate = candidate_from_parsed(parsed, base=existing)
            if existing is None:
                candidate = candidate.model_copy(update={"user_id": session.user_id})
        else:
            candidate = candidate_from_parsed(parsed)

        saved = self.storage.save_candidate(candidate)
        logger.info("Saved candidate %s (%s skills)", saved.id, len(saved.skills))
        return saved

    def update_profile(self, candidate: Candidate, update: CandidateUpdate) -> Candidate:
        """Apply a partial edit. Only provided fields are updated."""
        return self.storage.save_candidate(candidate.model_copy(update=update.changes()))
