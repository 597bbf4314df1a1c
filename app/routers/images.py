from __future__ import annotations

from fastapi import APIRouter

from app.studio.adapter import create_image, create_image_edit
from app.studio.schemas import ImageEditRequest, ImageGenerationRequest

router = APIRouter(prefix="/v1/images", tags=["images"])


@router.post("/generations")
async def image_generations(payload: ImageGenerationRequest) -> dict:
    return await create_image(payload)


@router.post("/edits")
async def image_edits(payload: ImageEditRequest) -> dict:
    return await create_image_edit(payload)
