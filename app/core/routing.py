from __future__ import annotations

from typing import Any

from .errors import InvalidRequest
from .types import (
    ChatFeature,
    ContentKind,
    FeatureFlags,
    GroundingTool,
    QualityTier,
    Route,
    RouteConfig,
)

HIGH_CAPABILITY_IMAGE_MODEL = "gemini-3-pro-image-preview"
FAST_IMAGE_MODEL = "gemini-2.5-flash-image"
FAST_TEXT_MODEL = "gemini-2.5-flash"
EXTENDED_REASONING_MODEL = "gemini-3-pro-preview"
FAST_VIDEO_MODEL = "veo-3.1-fast-generate-preview"

HIGH_QUALITY_IMAGE_SIZE = "2K"
THINKING_BUDGET = 32768
VIDEO_RESOLUTION = "720p"
VIDEO_ASPECT_RATIO = "16:9"

STRATEGY_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "sentimentScore": {"type": "integer", "minimum": 0, "maximum": 100},
        "viralProbability": {"type": "integer", "minimum": 0, "maximum": 100},
        "tone": {"type": "string"},
        "hashtags": {"type": "array", "items": {"type": "string"}},
        "improvementTips": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "sentimentScore",
        "viralProbability",
        "tone",
        "hashtags",
        "improvementTips",
    ],
    "additionalProperties": False,
}

MODEL_CATALOG: tuple[dict[str, str], ...] = (
    {"id": HIGH_CAPABILITY_IMAGE_MODEL, "used_for": "image (high quality)"},
    {"id": FAST_IMAGE_MODEL, "used_for": "image (standard quality), image edit"},
    {"id": FAST_TEXT_MODEL, "used_for": "strategy analysis, grounded chat"},
    {"id": EXTENDED_REASONING_MODEL, "used_for": "chat, extended reasoning"},
    {"id": FAST_VIDEO_MODEL, "used_for": "video"},
)


def select_route(
    content_kind: ContentKind,
    quality_tier: QualityTier | None = None,
    flags: FeatureFlags | None = None,
    *,
    output_token_cap: int | None = None,
) -> Route:
    """Map a content kind, quality tier and chat flags to a model and config.

    Pure and deterministic. When several chat flags are set the most specific
    one wins: search, then maps, then reasoning.
    """

    if content_kind is ContentKind.IMAGE:
        if quality_tier is QualityTier.HIGH:
            return Route(
                HIGH_CAPABILITY_IMAGE_MODEL,
                RouteConfig(image_size=HIGH_QUALITY_IMAGE_SIZE),
            )
        # The resolution hint is only accepted by the high-capability model.
        return Route(FAST_IMAGE_MODEL)

    if content_kind is ContentKind.IMAGE_EDIT:
        return Route(FAST_IMAGE_MODEL)

    if content_kind is ContentKind.STRATEGY_TEXT:
        return Route(
            FAST_TEXT_MODEL,
            RouteConfig(
                response_mime_type="application/json",
                response_schema=STRATEGY_RESPONSE_SCHEMA,
            ),
        )

    if content_kind is ContentKind.VIDEO:
        return Route(
            FAST_VIDEO_MODEL,
            RouteConfig(
                number_of_videos=1,
                resolution=VIDEO_RESOLUTION,
                aspect_ratio=VIDEO_ASPECT_RATIO,
            ),
        )

    if content_kind is ContentKind.CHAT_TURN:
        return _select_chat_route(flags or FeatureFlags(), output_token_cap)

    raise InvalidRequest(
        message=f"Unsupported content kind '{content_kind}'.",
        param="content_kind",
    )


def _select_chat_route(flags: FeatureFlags, output_token_cap: int | None) -> Route:
    feature = flags.active_feature()

    if feature is ChatFeature.SEARCH:
        return Route(
            FAST_TEXT_MODEL,
            RouteConfig(
                tools=(GroundingTool.GOOGLE_SEARCH,),
                max_output_tokens=output_token_cap,
            ),
        )

    if feature is ChatFeature.MAPS:
        return Route(
            FAST_TEXT_MODEL,
            RouteConfig(
                tools=(GroundingTool.GOOGLE_MAPS,),
                lat_lng=flags.location,
                max_output_tokens=output_token_cap,
            ),
        )

    if feature is ChatFeature.REASONING:
        # No output cap here: it conflicts with the thinking budget.
        return Route(
            EXTENDED_REASONING_MODEL,
            RouteConfig(thinking_budget=THINKING_BUDGET),
        )

    return Route(
        EXTENDED_REASONING_MODEL,
        RouteConfig(max_output_tokens=output_token_cap),
    )
