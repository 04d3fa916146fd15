"""
Zhide Recruiting Marketplace - Main Application

FastAPI backend with:
- MongoDB (or in-memory) key-value document store
- DeepSeek AI for resume parsing and job matching
- JWT authentication bound to stored sessions
- Roles: employer (B-side), candidate (C-side), guest

Run: uvicorn zhide.main:app --reload
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from zhide import __version__
from zhide.api.routes import api_router, auth_router
from zhide.core.config import Settings, get_settings
from zhide.core.errors import AppError, InternalError
from zhide.core.logging import configure_logging, get_logger
from zhide.services.ai_gateway import AIGateway
from zhide.services.matching_service import MatchingService
from zhide.services.resume_service import ResumeService
from zhide.services.seed_service import seed_demo_data
from zhide.services.storage_service import StorageAdapter, build_storage

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[StorageAdapter] = None,
    gateway: Optional[AIGateway] = None
) -> FastAPI:
    """
    Build the application. Storage and AI gateway can be injected (tests);
    otherwise they are created from settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    storage = storage or build_storage(settings)
    gateway = gateway or AIGateway.from_settings(settings)

    app = FastAPI(
        title="Zhide Recruiting Marketplace",
        description="""
        Recruiting marketplace connecting employers and job seekers.

        ## Features
        - **Authentication**: JWT-based auth for employers, candidates and guests
        - **Resumes**: Upload text or documents, parsed into profiles by AI
        - **Jobs**: Employers post jobs, everyone browses active ones
        - **Matching**: AI scores a candidate against all active jobs, results cached
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.gateway = gateway
    app.state.resume_service = ResumeService(storage, gateway)
    app.state.matching_service = MatchingService(storage, gateway)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Validation failed", "errors": jsonable_errors(exc)}
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    app.include_router(auth_router)
    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    async def startup_event():
        """Create indexes and seed demo data."""
        try:
            storage.init()
            if settings.seed_demo_data:
                seed_demo_data(storage)
        except Exception as e:
            logger.warning("Storage initialization failed: %s", e)

    @app.get("/health", tags=["Health"], response_class=PlainTextResponse)
    async def health_check():
        """Liveness probe."""
        return "OK"

    @app.get("/health/ready", tags=["Health"])
    def readiness_check():
        """Detailed health check."""
        storage_ok = storage.ping()
        return JSONResponse(
            status_code=200 if storage_ok else 503,
            content={
                "status": "healthy" if storage_ok else "degraded",
                "storage": "connected" if storage_ok else "disconnected",
                "ai": "configured" if settings.ai_configured else "not configured"
            }
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Request validation errors without the non-serializable ctx values."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


app = create_app()
