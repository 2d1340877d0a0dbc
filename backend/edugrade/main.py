"""
edugrade - FastAPI Application Entry Point.

Feature-based modular architecture:
  Each feature in edugrade/features/ has its own schemas, service and router.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from edugrade.config import get_settings

# ── Feature Routers ──────────────────────────────────────
from edugrade.features.grading.router import router as grading_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup & shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} starting...")
    yield
    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Tính điểm, dự đoán học lực và học bạ theo thang điểm 10",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Register Feature Routers ─────────────────────────
    app.include_router(grading_router, prefix="/api/grading", tags=["Grading"])

    # ── Health Check ─────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
