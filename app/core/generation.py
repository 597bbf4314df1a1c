from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from google.genai import types

from .builders import (
    DEFAULT_IMAGE_MIME_TYPE,
    build_chat_request,
    build_image_edit_request,
    build_image_request,
    build_strategy_request,
    build_video_request,
)
from .client import create_client
from .config import Settings, load_settings
from .errors import map_backend_error
from .normalizers import extract_chat, extract_image, parse_strategy_analysis, to_operation
from .polling import VideoJobPoller
from .types import (
    AspectRatio,
    ChatMessage,
    ChatResult,
    FeatureFlags,
    GenerationRequest,
    GroundingTool,
    ImageResult,
    InlineBinaryPart,
    Operation,
    PayloadPart,
    Platform,
    QualityTier,
    RouteConfig,
    StrategyAnalysis,
    TextPart,
    VideoResult,
)

logger = logging.getLogger(__name__)


async def generate_image(
    prompt: str,
    aspect_ratio: AspectRatio = AspectRatio.SQUARE,
    quality_tier: QualityTier = QualityTier.STANDARD,
    *,
    settings: Settings | None = None,
) -> ImageResult:
    request = build_image_request(prompt, aspect_ratio, quality_tier)
    response = await _generate_content(request, settings)
    return extract_image(response)


async def edit_image(
    source_image: bytes | None,
    instruction: str,
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE,
    *,
    settings: Settings | None = None,
) -> ImageResult:
    request = build_image_edit_request(source_image, instruction, mime_type)
    response = await _generate_content(request, settings)
    return extract_image(response)


async def analyze_strategy(
    post_content: str,
    platform: Platform,
    *,
    settings: Settings | None = None,
) -> StrategyAnalysis:
    request = build_strategy_request(post_content, platform)
    response = await _generate_content(request, settings)
    return parse_strategy_analysis(response)


async def send_chat_message(
    message: str,
    history: Iterable[ChatMessage] = (),
    flags: FeatureFlags | None = None,
    *,
    settings: Settings | None = None,
) -> ChatResult:
    settings = settings or load_settings()
    request = build_chat_request(
        message,
        history,
        flags,
        output_token_cap=settings.chat_max_output_tokens,
    )
    logger.info(
        "Sending chat turn to %s (history=%d, tools=%s)",
        request.model_id,
        len(request.history),
        [tool.value for tool in request.config.tools],
    )

    try:
        client = create_client(settings)
        chat = client.aio.chats.create(
            model=request.model_id,
            config=to_generate_config(request.config),
            history=[
                types.Content(role=entry.role, parts=[types.Part(text=entry.text)])
                for entry in request.history
            ],
        )
        response = await chat.send_message(request.text)
    except Exception as exc:
        raise map_backend_error(exc) from exc

    return extract_chat(response)


async def generate_video(
    prompt: str,
    start_frame: bytes | None = None,
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE,
    *,
    cancel_event: asyncio.Event | None = None,
    settings: Settings | None = None,
) -> VideoResult:
    settings = settings or load_settings()
    request = build_video_request(prompt, start_frame, mime_type)
    logger.info("Submitting video generation to %s", request.model_id)

    try:
        client = create_client(settings)
        submitted = await client.aio.models.generate_videos(
            model=request.model_id,
            prompt=request.text,
            image=_to_image(request.binary_parts),
            config=to_video_config(request.config),
        )
    except Exception as exc:
        raise map_backend_error(exc) from exc

    async def fetch_status(operation: Operation) -> Operation:
        try:
            latest = await client.aio.operations.get(operation.handle)
        except Exception as exc:
            raise map_backend_error(exc) from exc
        return to_operation(latest)

    poller = VideoJobPoller(
        fetch_status,
        interval=settings.video_poll_interval_seconds,
        max_attempts=settings.video_max_poll_attempts,
        credential=settings.api_key,
    )
    return await poller.run(to_operation(submitted), cancel_event)


def to_generate_config(config: RouteConfig) -> types.GenerateContentConfig | None:
    """Translate a route config into the google-genai request config."""

    kwargs: dict[str, Any] = {}

    if config.aspect_ratio is not None or config.image_size is not None:
        kwargs["image_config"] = types.ImageConfig(
            aspect_ratio=config.aspect_ratio,
            image_size=config.image_size,
        )

    if config.tools:
        kwargs["tools"] = [_to_tool(tool) for tool in config.tools]

    if config.lat_lng is not None:
        kwargs["tool_config"] = types.ToolConfig(
            retrieval_config=types.RetrievalConfig(
                lat_lng=types.LatLng(
                    latitude=config.lat_lng.latitude,
                    longitude=config.lat_lng.longitude,
                )
            )
        )

    if config.thinking_budget is not None:
        kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=config.thinking_budget)

    if config.max_output_tokens is not None:
        kwargs["max_output_tokens"] = config.max_output_tokens

    if config.response_mime_type is not None:
        kwargs["response_mime_type"] = config.response_mime_type

    if config.response_schema is not None:
        kwargs["response_json_schema"] = config.response_schema

    if not kwargs:
        return None

    return types.GenerateContentConfig(**kwargs)


def to_video_config(config: RouteConfig) -> types.GenerateVideosConfig:
    return types.GenerateVideosConfig(
        number_of_videos=config.number_of_videos,
        resolution=config.resolution,
        aspect_ratio=config.aspect_ratio,
    )


def to_contents(parts: Iterable[PayloadPart]) -> list[types.Content]:
    return [types.Content(role="user", parts=[_to_part(part) for part in parts])]


async def _generate_content(
    request: GenerationRequest,
    settings: Settings | None,
) -> types.GenerateContentResponse:
    logger.info("Calling %s for %s", request.model_id, request.content_kind.value)

    try:
        client = create_client(settings)
        return await client.aio.models.generate_content(
            model=request.model_id,
            contents=to_contents(request.parts),
            config=to_generate_config(request.config),
        )
    except Exception as exc:
        raise map_backend_error(exc) from exc


def _to_part(part: PayloadPart) -> types.Part:
    if isinstance(part, TextPart):
        return types.Part(text=part.text)
    return types.Part(inline_data=types.Blob(mime_type=part.mime_type, data=part.data))


def _to_tool(tool: GroundingTool) -> types.Tool:
    if tool is GroundingTool.GOOGLE_SEARCH:
        return types.Tool(google_search=types.GoogleSearch())
    return types.Tool(google_maps=types.GoogleMaps())


def _to_image(parts: tuple[InlineBinaryPart, ...]) -> types.Image | None:
    if not parts:
        return None
    return types.Image(image_bytes=parts[0].data, mime_type=parts[0].mime_type)
