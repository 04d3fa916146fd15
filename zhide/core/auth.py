"""
Authentication Utility - JWT, sessions and password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification (token bound to a stored Session)
- FastAPI dependencies for protected and role-gated routes

A token is valid only while its Session exists in storage and is younger than
jwt_expire_minutes (24h); logout deletes the Session.
"""

from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from zhide.core.config import Settings
from zhide.core.errors import Forbidden, Unauthorized
from zhide.schemas.schemas import Session, User, UserRole, utcnow

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing headers are reported as 401 by get_current_session
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(session: Session, settings: Settings) -> str:
    """Create JWT access token for a session."""
    now = utcnow()
    to_encode = {
        "sub": session.user_id or "guest",
        "role": session.role.value,
        "sid": session.id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    """Decode and verify JWT token (signature and expiry)."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def start_session(request: Request, role: UserRole, user: Optional[User] = None) -> str:
    """Create and store a Session, returning its bearer token."""
    storage = request.app.state.storage
    session = Session(
        user_id=user.id if user else None,
        role=role,
        name=user.name if user else None
    )
    storage.set_session(session)
    return create_access_token(session, request.app.state.settings)


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Session:
    """
    FastAPI dependency - Get the current authenticated session.

    Usage:
        @router.get("/protected")
        def route(session: Session = Depends(get_current_session)):
            return session
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")

    settings: Settings = request.app.state.settings
    payload = decode_token(credentials.credentials, settings)
    if not payload or not payload.get("sid"):
        raise Unauthorized()

    storage = request.app.state.storage
    session = storage.get_session(payload["sid"])
    if session is None or session.role.value != payload.get("role"):
        raise Unauthorized()

    if utcnow() - session.created_at > timedelta(minutes=settings.jwt_expire_minutes):
        storage.delete_session(session.id)
        raise Unauthorized("Session expired")

    return session


def require_role(*roles: UserRole):
    """
    Dependency factory - reject callers whose role is not in roles.

    Usage:
        @router.post("/jobs")
        def create_job(session: Session = Depends(require_role(UserRole.employer))):
            ...
    """
    async def dependency(session: Session = Depends(get_current_session)) -> Session:
        if session.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise Forbidden(f"Forbidden: requires role {allowed}")
        return session

    return dependency


get_current_employer = require_role(UserRole.employer)
get_current_candidate = require_role(UserRole.candidate)
