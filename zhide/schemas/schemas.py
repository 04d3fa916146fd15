"""
Pydantic Schemas - Domain records and Request/Response Validation

All schemas in one file for simplicity. Domain records (User, Session,
Candidate, Job, MatchResult) are what the storage layer persists; the
request/response schemas are the API contract.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Generate an entity id such as c_3f2a9b1e7d4c."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    employer = "employer"    # B-side: recruiter / HR
    candidate = "candidate"  # C-side: job seeker
    guest = "guest"


class CandidateStatus(str, Enum):
    unemployed = "unemployed"
    interviewing = "interviewing"
    hired = "hired"


class JobSource(str, Enum):
    exclusive = "exclusive"
    crawled = "crawled"


# ============================================================
# DOMAIN RECORDS
# ============================================================

class User(BaseModel):
    id: str = Field(default_factory=lambda: new_id("u"))
    email: str
    password_hash: str
    role: UserRole
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    id: str = Field(default_factory=lambda: new_id("s"))
    user_id: Optional[str] = None  # None for guests
    role: UserRole
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Candidate(BaseModel):
    id: str = Field(default_factory=lambda: new_id("c"))
    user_id: Optional[str] = None
    name: str
    title: str
    experience_years: int = Field(0, ge=0)
    education: str = ""
    skills: List[str] = []
    current_salary: str = ""
    target_salary: str = ""
    status: CandidateStatus = CandidateStatus.unemployed
    summary: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    updated_at: Optional[datetime] = None


class Job(BaseModel):
    id: str = Field(default_factory=lambda: new_id("j"))
    title: str
    company: str
    location: str = ""
    salary_range: str = ""
    requirements: List[str] = []
    tags: List[str] = []
    description: str = ""
    source: JobSource = JobSource.exclusive
    original_url: Optional[str] = None
    post_date: datetime = Field(default_factory=utcnow)
    active: bool = True
    recruiter_id: Optional[str] = None


class MatchResult(BaseModel):
    candidate_id: str
    job_id: str
    score: float = Field(..., ge=0, le=100)
    reason: str
    overlapping_keywords: List[str] = []
    created_at: datetime = Field(default_factory=utcnow)


class JobMatch(MatchResult):
    """A match hydrated with its current Job record."""
    job: Job


# ============================================================
# AI OUTPUT SCHEMAS
# ============================================================

class ParsedResume(BaseModel):
    """
    Structured profile the AI model returns for a resume.
    Any field may be missing or null; the resume service fills placeholders.
    """
    name: Optional[str] = None
    title: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0)
    education: Optional[str] = None
    skills: List[str] = []
    current_salary: Optional[str] = None
    target_salary: Optional[str] = None
    summary: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("experience_years", mode="before")
    @classmethod
    def round_years(cls, v):
        # Models often answer 5.5 years
        if isinstance(v, float):
            return int(round(v))
        return v

    @field_validator("skills", mode="before")
    @classmethod
    def null_skills(cls, v):
        return [] if v is None else v

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]


class ScoredJob(BaseModel):
    job_id: str
    score: float = Field(..., ge=0, le=100)
    reason: str
    overlapping_keywords: List[str] = []


class MatchList(BaseModel):
    matches: List[ScoredJob]


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole
    name: Optional[str] = Field(None, max_length=100)

    @field_validator("role")
    @classmethod
    def no_guest_accounts(cls, v: UserRole) -> UserRole:
        if v == UserRole.guest:
            raise ValueError("guest accounts cannot be registered")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    role: UserRole
    name: Optional[str] = None


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserInfo


# ============================================================
# CANDIDATE / RESUME SCHEMAS
# ============================================================

def _set_fields(update: BaseModel, nullable: set) -> dict:
    changes = update.model_dump(exclude_unset=True)
    return {k: v for k, v in changes.items() if v is not None or k in nullable}


class ResumeUploadRequest(BaseModel):
    resume_text: Optional[str] = None
    document_base64: Optional[str] = None
    mime_type: Optional[str] = None


class CandidateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0)
    education: Optional[str] = None
    skills: Optional[List[str]] = None
    current_salary: Optional[str] = None
    target_salary: Optional[str] = None
    status: Optional[CandidateStatus] = None
    summary: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def changes(self) -> dict:
        """Fields the caller sent. Null clears email/phone and is ignored elsewhere."""
        return _set_fields(self, nullable={"email", "phone"})


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=200)
    company: str = Field(..., min_length=1, max_length=200)
    location: str = ""
    salary_range: str = ""
    requirements: List[str] = []
    tags: List[str] = []
    description: str = ""
    source: JobSource = JobSource.exclusive
    original_url: Optional[str] = None


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    company: Optional[str] = None
    location: Optional[str] = None
    salary_range: Optional[str] = None
    requirements: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    description: Optional[str] = None
    original_url: Optional[str] = None
    active: Optional[bool] = None

    def changes(self) -> dict:
        """Fields the caller sent. Null clears original_url and is ignored elsewhere."""
        return _set_fields(self, nullable={"original_url"})


# ============================================================
# MATCH SCHEMAS
# ============================================================

class MatchRunRequest(BaseModel):
    candidate_id: Optional[str] = None
    force_refresh: bool = False


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
