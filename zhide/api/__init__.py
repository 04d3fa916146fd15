"""
API module - FastAPI routers and endpoint definitions.

Usage:
    from zhide.api.routes import api_router, auth_router
    app.include_router(auth_router)
    app.include_router(api_router, prefix="/api")
"""
