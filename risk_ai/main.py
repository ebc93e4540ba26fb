"""
Main FastAPI application
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from risk_ai.api.routes import analysis, history, models
from risk_ai.core.config import Settings, get_settings
from risk_ai.core.deps import build_orchestrator
from risk_ai.core.exceptions import AssessmentError
from risk_ai.services.llm import ChatModelFactory

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    settings: Settings = app.state.settings
    app.state.orchestrator = build_orchestrator(
        settings, app.state.chat_model_factory
    )
    if settings.api_key is None:
        log.warning("API_KEY is not set; analysis requests will be refused")
    yield


async def assessment_error_handler(request: Request, exc: AssessmentError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app(
    settings: Optional[Settings] = None,
    chat_model_factory: Optional[ChatModelFactory] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="AI-assisted workplace safety risk assessment from photos",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.chat_model_factory = chat_model_factory

    app.add_exception_handler(AssessmentError, assessment_error_handler)

    # Include routers
    app.include_router(analysis.router, prefix="/api")
    app.include_router(history.router, prefix="/api")
    app.include_router(models.router, prefix="/api")

    @app.get("/health")
    async def health():
        """Health check."""
        return {
            "status": "healthy",
            "api_key_configured": settings.api_key is not None,
        }

    @app.get("/")
    async def root():
        return {"name": settings.app_name, "version": settings.app_version, "docs": "/docs"}

    return app


def run() -> None:
    """Serve the app with uvicorn (console entry point)"""
    import uvicorn

    uvicorn.run("risk_ai.main:app", host="0.0.0.0", port=8000)


app = create_app()
