"""
AI Gateway - Resume parsing and batch match scoring.

PURPOSE:
AI is used ONLY for:
1. Resume parsing (text / document → structured profile)
2. Match scoring (one candidate vs. a batch of jobs → top-N scored matches)

Every reply is decoded and validated against a strict pydantic schema.
Anything unusable raises ParseError / MatchError; the gateway never
returns half-valid domain objects and never touches storage.

COST OPTIMIZATION:
- One batched call per matching run, regardless of job-pool size
- Job descriptions truncated before they go into the prompt
- The model returns only the top-N matches (N between 3 and 5)
"""

import json
from dataclasses import dataclass
from typing import List, Optional

from pydantic import ValidationError as SchemaError

from zhide.core.config import Settings
from zhide.core.errors import MatchError, ParseError
from zhide.core.logging import get_logger
from zhide.schemas.schemas import Candidate, Job, MatchList, MatchResult, ParsedResume
from zhide.services.ai_client import AIClient, AIClientError, extract_json
from zhide.utils.file_upload import decode_base64_document, extract_text

logger = get_logger(__name__)

MIN_TOP_N = 3
MAX_TOP_N = 5


RESUME_SYSTEM_PROMPT = """You are an expert HR recruiter for high-end talent. Extract structured data from the resume and return ONLY valid JSON.
Output format:
{
  "name": "string",
  "title": "current or most recent job title",
  "experience_years": integer,
  "education": "highest degree and university, e.g. 清华大学, 计算机硕士",
  "skills": ["top 5-10 technical or professional skills"],
  "current_salary": "string, e.g. 80万",
  "target_salary": "string",
  "summary": "professional summary in Chinese, max 100 words",
  "email": "string or null",
  "phone": "string or null"
}
If exact salary is not found, use "面议". Return ONLY the JSON, no explanation."""


MATCH_SYSTEM_PROMPT = """You are a senior headhunter. Analyze the candidate against EACH job in the list.
For every job assign a match score (0-100), give a concise reason in Chinese explaining why it matches,
and list keywords present in both the candidate profile and the job.
Return ONLY the top {top_n} matches sorted by score descending, as valid JSON:
{{
  "matches": [
    {{"job_id": "exact id from the job list", "score": number, "reason": "string", "overlapping_keywords": ["string"]}}
  ]
}}
Return ONLY the JSON, no explanation."""


@dataclass
class ResumeInput:
    """Either plain resume text or a base64-encoded document with its MIME type."""
    text: Optional[str] = None
    document_base64: Optional[str] = None
    mime_type: Optional[str] = None

    def to_text(self) -> str:
        if self.text and self.text.strip():
            return self.text
        if self.document_base64:
            content = decode_base64_document(self.document_base64)
            return extract_text(content, self.mime_type or "application/pdf")
        raise ParseError("Resume input is empty")


def clamp_top_n(top_n: int) -> int:
    return max(MIN_TOP_N, min(MAX_TOP_N, top_n))


def candidate_prompt_view(candidate: Candidate) -> dict:
    """The candidate fields that matter for matching (no contact data)."""
    return {
        "name": candidate.name,
        "title": candidate.title,
        "experience_years": candidate.experience_years,
        "education": candidate.education,
        "skills": candidate.skills,
        "target_salary": candidate.target_salary,
        "summary": candidate.summary,
    }


def job_prompt_view(job: Job, max_chars: int) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "salary": job.salary_range,
        "requirements": ", ".join(job.requirements),
        "description": job.description[:max_chars],
    }


class AIGateway:
    """
    The only component that talks to the AI model.
    """

    def __init__(self, client: AIClient, top_n: int = MAX_TOP_N, job_description_max_chars: int = 300):
        self.client = client
        self.top_n = clamp_top_n(top_n)
        self.job_description_max_chars = job_description_max_chars

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIGateway":
        return cls(
            AIClient(settings),
            top_n=settings.match_top_n,
            job_description_max_chars=settings.job_description_max_chars
        )

    def parse_resume(self, resume: ResumeInput) -> ParsedResume:
        """
        Parse a resume into a structured profile.

        Raises:
            ValidationError: document could not be decoded / read
            ParseError: AI call failed or returned unusable data
        """
        resume_text = resume.to_text()

        try:
            reply = self.client.complete(
                RESUME_SYSTEM_PROMPT,
                f"请解析这份简历内容:\n{resume_text}",
                max_tokens=1000
            )
        except AIClientError as e:
            raise ParseError(str(e.detail))

        try:
            data = extract_json(reply)
            return ParsedResume.model_validate(data)
        except (ValueError, SchemaError) as e:
            raise ParseError(f"AI returned malformed resume data: {e}")

    def match_jobs(self, candidate: Candidate, jobs: List[Job]) -> List[MatchResult]:
        """
        Score a candidate against a batch of jobs in one AI call.

        Returns at most top_n results sorted by score descending.
        An empty job list returns [] without calling the model.

        Raises:
            MatchError: AI call failed or returned unusable data
        """
        if not jobs:
            return []

        job_views = [job_prompt_view(j, self.job_description_max_chars) for j in jobs]
        user_content = (
            f"Candidate Profile: {json.dumps(candidate_prompt_view(candidate), ensure_ascii=False)}\n\n"
            f"Job List: {json.dumps(job_views, ensure_ascii=False)}"
        )

        try:
            reply = self.client.complete(
                MATCH_SYSTEM_PROMPT.format(top_n=self.top_n),
                user_content,
                max_tokens=1500
            )
        except AIClientError as e:
            raise MatchError(str(e.detail))

        try:
            data = extract_json(reply)
            # Some models drop the wrapper object and answer with the bare list
            if isinstance(data, list):
                data = {"matches": data}
            scored = MatchList.model_validate(data).matches
        except (ValueError, SchemaError) as e:
            raise MatchError(f"AI returned malformed match data: {e}")

        known_ids = {j.id for j in jobs}
        results: List[MatchResult] = []
        seen = set()
        for item in sorted(scored, key=lambda s: s.score, reverse=True):
            if item.job_id not in known_ids:
                logger.warning("AI returned unknown job id %s, dropping it", item.job_id)
                continue
            if item.job_id in seen:
                continue
            seen.add(item.job_id)
            results.append(MatchResult(
                candidate_id=candidate.id,
                job_id=item.job_id,
                score=item.score,
                reason=item.reason,
                overlapping_keywords=item.overlapping_keywords
            ))

        return results[:self.top_n]
