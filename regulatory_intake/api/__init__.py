"""
FastAPI application factory and API package.

Run with:
    uvicorn regulatory_intake.api:app --reload --port 8000

Or via main.py:
    python -m regulatory_intake --serve
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from regulatory_intake.config import get_settings
from regulatory_intake.api.routes import (
    group_router,
    health_router,
    workflow_router,
    get_session_store,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Application factory — create and configure the FastAPI instance."""
    settings = get_settings()

    application = FastAPI(
        title="Regulatory Requirement Intake API",
        description="Step-by-step collection of jurisdiction compliance requirements",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.debug,
    )

    # The dashboard is served from another origin
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health_router, tags=["Health"])
    application.include_router(workflow_router, prefix="/api/workflows", tags=["Workflows"])
    application.include_router(group_router, prefix="/api/groups", tags=["Groups"])

    @application.on_event("startup")
    async def startup():
        logger.info(f"Starting {settings.app_name} API (backend: {settings.api_base_url})")

    @application.on_event("shutdown")
    async def shutdown():
        store = get_session_store()
        for session_id in store.list_sessions():
            session = store.discard(session_id)
            if session is not None:
                await session.workflow.aclose()

    return application


# Module-level instance for `uvicorn regulatory_intake.api:app`
app = create_app()
