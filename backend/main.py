"""
KiaOra Oracle - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import health, oracle
from app.core.config import Settings, get_settings
from app.core.dependencies import ServiceContainer, build_container
from app.core.exceptions import OracleError

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContainer] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Settings to use (defaults to environment settings)
        services: Pre-built services; built from settings on startup when absent
    """
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            app.state.services = build_container(settings)
        try:
            yield
        finally:
            await app.state.services.aclose()

    app = FastAPI(
        title="KiaOra Oracle API",
        description="Daily oracle card consultations",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services

    logger.info(f"CORS origins: {settings.cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=r"https://.*\.vercel\.app",  # Allow all Vercel preview deployments
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OracleError)
    async def oracle_error_handler(request, exc: OracleError):
        return oracle.error_response(exc)

    # Include routers
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(oracle.router, prefix="/api/oracle", tags=["oracle"])

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "KiaOra Oracle API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
