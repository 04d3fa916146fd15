"""
Error taxonomy.

Every error carries the HTTP status it maps to; the handler registered in
zhide.main renders them as {"detail": ...} like FastAPI's HTTPException.

AI errors (ParseError / MatchError) are normally recovered by the caller
into a placeholder profile or an empty match list.
"""

from typing import Dict, Optional


class AppError(Exception):
    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(AppError):
    status_code = 400
    default_detail = "Invalid input"


class Unauthorized(AppError):
    status_code = 401
    default_detail = "Invalid or expired token"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(AppError):
    status_code = 403
    default_detail = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    default_detail = "Not found"


class AIError(AppError):
    """The AI model failed or returned unusable data."""
    status_code = 502
    default_detail = "AI service failure"


class ParseError(AIError):
    default_detail = "Resume parsing failed"


class MatchError(AIError):
    default_detail = "Matching service failure"


class InternalError(AppError):
    status_code = 500
