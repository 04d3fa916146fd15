"""
Authentication Routes

POST /auth/register - Register new user, returns token
POST /auth/login - Login and get JWT token
POST /auth/guest - Enter as guest (browse jobs only)
POST /auth/logout - Destroy current session
GET /auth/me - Get current user info
"""

from fastapi import APIRouter, Depends, Request

from zhide.api.deps import get_storage
from zhide.core.auth import get_current_session, hash_password, start_session, verify_password
from zhide.core.errors import NotFound, Unauthorized, ValidationError
from zhide.core.logging import get_logger
from zhide.schemas.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    Session,
    User,
    UserInfo,
    UserRole,
)
from zhide.services.storage_service import StorageAdapter

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _user_info(user: User) -> UserInfo:
    return UserInfo(id=user.id, email=user.email, role=user.role, name=user.name)


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    request: Request,
    storage: StorageAdapter = Depends(get_storage)
):
    """
    Register a new employer or candidate account.

    Returns a token right away, no separate login needed.
    """
    if storage.get_user_by_email(body.email):
        raise ValidationError("User already exists")

    user = storage.save_user(User(
        email=body.email,
        password_hash=hash_password(body.password),
        role=body.role,
        name=body.name
    ))
    logger.info("Registered %s account %s", user.role.value, user.id)

    token = start_session(request, user.role, user)
    return AuthResponse(token=token, user=_user_info(user))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    request: Request,
    storage: StorageAdapter = Depends(get_storage)
):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user = storage.get_user_by_email(body.email)
    if not user or not verify_password(body.password, user.password_hash):
        raise Unauthorized("Invalid credentials")

    token = start_session(request, user.role, user)
    return AuthResponse(token=token, user=_user_info(user))


@router.post("/guest", response_model=AuthResponse)
def guest(request: Request):
    """Enter as a guest. Guests can browse jobs but not upload or match."""
    token = start_session(request, UserRole.guest)
    return AuthResponse(token=token, user=UserInfo(role=UserRole.guest))


@router.post("/logout", response_model=MessageResponse)
def logout(
    session: Session = Depends(get_current_session),
    storage: StorageAdapter = Depends(get_storage)
):
    """Destroy the current session; its token stops working immediately."""
    storage.delete_session(session.id)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserInfo)
def get_me(
    session: Session = Depends(get_current_session),
    storage: StorageAdapter = Depends(get_storage)
):
    """Get current authenticated user's info."""
    if session.user_id is None:
        return UserInfo(role=session.role, name=session.name)

    user = storage.get_user(session.user_id)
    if user is None:
        raise NotFound("User not found")
    return _user_info(user)
