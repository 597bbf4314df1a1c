from __future__ import annotations

from fastapi import APIRouter

from app.studio.adapter import model_cards

router = APIRouter(prefix="/v1", tags=["models"])


@router.get("/models")
async def list_models() -> dict:
    return {
        "object": "list",
        "data": model_cards(),
    }
