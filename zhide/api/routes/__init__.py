"""
API Routes - Combines all route modules.

auth_router is mounted at the root (/auth/...), api_router under /api.
"""

from fastapi import APIRouter

from zhide.api.routes.auth_routes import router as auth_router
from zhide.api.routes.profile_routes import router as profile_router
from zhide.api.routes.candidate_routes import router as candidate_router
from zhide.api.routes.job_routes import router as job_router
from zhide.api.routes.match_routes import router as match_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(profile_router)
api_router.include_router(candidate_router)
api_router.include_router(job_router)
api_router.include_router(match_router)

__all__ = ["api_router", "auth_router"]
