from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import configure_logging, load_settings
from app.dependencies import register_exception_handlers
from app.internal import admin
from app.routers import chat, images, models, strategy, videos
from app.studio.jobs import VideoJobRegistry


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.video_jobs.shutdown()


def create_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="antcpu-studio",
        version="0.1.0",
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.video_jobs = VideoJobRegistry(
        retention_seconds=settings.video_job_retention_seconds,
        max_finished=settings.video_job_max_finished,
    )

    register_exception_handlers(app)

    app.include_router(models.router)
    app.include_router(images.router)
    app.include_router(strategy.router)
    app.include_router(chat.router)
    app.include_router(videos.router)
    app.include_router(admin.router)

    return app


app = create_app()
