from __future__ import annotations

from fastapi import APIRouter

from app.core.config import load_settings

router = APIRouter(prefix="/internal", tags=["internal"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    settings = load_settings()
    return {
        "status": "ok",
        "credential": "configured" if settings.api_key else "missing",
    }
