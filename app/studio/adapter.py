from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from app.core import generation
from app.core.builders import DEFAULT_IMAGE_MIME_TYPE, build_video_request, decode_image_payload
from app.core.errors import InvalidRequest, StudioError
from app.core.routing import MODEL_CATALOG
from app.core.types import (
    ChatMessage,
    ChatResult,
    Citation,
    FeatureFlags,
    ImageResult,
    LatLng,
    PlaceAnswerCitation,
    VideoResult,
)

from .errors import (
    ANALYSIS_FAILURE_NOTICE,
    CHAT_FAILURE_REPLY,
    IMAGE_FAILURE_NOTICE,
    VIDEO_FAILURE_NOTICE,
    map_studio_error,
)
from .jobs import VideoJob, VideoJobRegistry
from .schemas import (
    ChatFeatures,
    ChatMessageRequest,
    ImageEditRequest,
    ImageGenerationRequest,
    StrategyAnalysisRequest,
    VideoGenerationRequest,
)

logger = logging.getLogger(__name__)


def model_cards() -> list[dict[str, Any]]:
    return [
        {"id": entry["id"], "object": "model", "owned_by": "google", "used_for": entry["used_for"]}
        for entry in MODEL_CATALOG
    ]


async def create_image(request: ImageGenerationRequest) -> dict[str, Any]:
    try:
        result = await generation.generate_image(
            request.prompt,
            request.aspect_ratio,
            request.quality,
        )
    except Exception as exc:
        raise map_studio_error(exc, IMAGE_FAILURE_NOTICE) from exc

    return _image_payload(result, mode="create")


async def create_image_edit(request: ImageEditRequest) -> dict[str, Any]:
    try:
        source_image, mime_type = None, DEFAULT_IMAGE_MIME_TYPE
        if request.image:
            source_image, mime_type = decode_image_payload(request.image)
        result = await generation.edit_image(source_image, request.prompt, mime_type)
    except Exception as exc:
        raise map_studio_error(exc, IMAGE_FAILURE_NOTICE) from exc

    return _image_payload(result, mode="edit")


async def create_strategy_analysis(request: StrategyAnalysisRequest) -> dict[str, Any]:
    try:
        analysis = await generation.analyze_strategy(request.content, request.platform)
    except Exception as exc:
        raise map_studio_error(exc, ANALYSIS_FAILURE_NOTICE) from exc

    payload = analysis.model_dump(by_alias=True)
    payload["platform"] = request.platform.value
    return payload


async def create_chat_reply(request: ChatMessageRequest) -> dict[str, Any]:
    """Send one chat turn; backend failures come back as an apologetic model reply."""

    try:
        history = tuple(ChatMessage(role=entry.role, text=entry.text) for entry in request.history)
        result = await generation.send_chat_message(
            request.message,
            history,
            _to_feature_flags(request.features),
        )
    except InvalidRequest as exc:
        raise map_studio_error(exc) from exc
    except Exception as exc:
        error = map_studio_error(exc)
        logger.warning("Chat turn failed (%s): %s", error.code, error.message)
        return _chat_payload(ChatResult(text=CHAT_FAILURE_REPLY), error=error.to_error())

    return _chat_payload(result)


def submit_video_job(request: VideoGenerationRequest, registry: VideoJobRegistry) -> VideoJob:
    # Reject bad input before a background task is created.
    try:
        build_video_request(request.prompt)
        start_frame, mime_type = None, DEFAULT_IMAGE_MIME_TYPE
        if request.image:
            start_frame, mime_type = decode_image_payload(request.image)
    except StudioError as exc:
        raise map_studio_error(exc, VIDEO_FAILURE_NOTICE) from exc

    async def run(cancel_event: asyncio.Event) -> VideoResult:
        return await generation.generate_video(
            request.prompt,
            start_frame,
            mime_type,
            cancel_event=cancel_event,
        )

    return registry.submit(run)


def _image_payload(result: ImageResult, mode: str) -> dict[str, Any]:
    return {
        "object": "image",
        "created": int(time.time()),
        "mode": mode,
        "data_uri": result.data_uri,
    }


def _chat_payload(result: ChatResult, error: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "object": "chat.message",
        "role": "model",
        "text": result.text,
        "citations": [_citation_payload(citation) for citation in result.citations],
        "error": error,
    }


def _citation_payload(citation: Citation) -> dict[str, Any]:
    if isinstance(citation, PlaceAnswerCitation):
        return {
            "type": citation.kind,
            "title": citation.title,
            "uri": citation.uri,
            "review_snippet_count": citation.review_snippet_count,
        }

    return {"type": citation.kind, "uri": citation.uri, "title": citation.title}


def _to_feature_flags(features: ChatFeatures) -> FeatureFlags:
    location = None
    if features.location is not None:
        location = LatLng(features.location.latitude, features.location.longitude)

    return FeatureFlags(
        use_search_grounding=features.search,
        use_maps_grounding=features.maps,
        use_extended_reasoning=features.thinking,
        location=location,
    )
