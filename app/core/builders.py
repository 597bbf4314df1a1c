from __future__ import annotations

import base64
import binascii
import dataclasses
import re
from collections.abc import Iterable

from .errors import InvalidRequest
from .routing import select_route
from .types import (
    AspectRatio,
    ChatMessage,
    ContentKind,
    FeatureFlags,
    GenerationRequest,
    InlineBinaryPart,
    Platform,
    QualityTier,
    TextPart,
)

IMAGE_STYLE_PREAMBLE = (
    "Visual style: High-tech, futuristic, minimal, neon accents, "
    "'antcpu' brand aesthetic. "
)
VIDEO_STYLE_PREAMBLE = "Cinematic, futuristic, antcpu style. "

STRATEGY_PROMPT_TEMPLATE = """
Analyze this social media post for {platform} from the perspective of the 'antcpu' brand (tech-focused, innovative, futuristic).
Post Content: "{content}"

Provide a JSON response with:
- sentimentScore (0-100)
- viralProbability (0-100)
- tone (string, e.g., "Professional", "Edgy")
- hashtags (array of strings, optimized for the platform)
- improvementTips (array of strings, specific actionable advice)
"""

DEFAULT_IMAGE_MIME_TYPE = "image/png"

_DATA_URI_PATTERN = re.compile(r"^data:(image/(?:png|jpeg|jpg));base64,", re.IGNORECASE)


def build_image_request(
    prompt: str,
    aspect_ratio: AspectRatio = AspectRatio.SQUARE,
    quality_tier: QualityTier = QualityTier.STANDARD,
) -> GenerationRequest:
    _require_text(prompt, "prompt")
    route = select_route(ContentKind.IMAGE, quality_tier)

    return GenerationRequest(
        content_kind=ContentKind.IMAGE,
        parts=(TextPart(f"{IMAGE_STYLE_PREAMBLE}{prompt}"),),
        model_id=route.model_id,
        config=dataclasses.replace(route.config, aspect_ratio=aspect_ratio.value),
    )


def build_image_edit_request(
    source_image: bytes | None,
    instruction: str,
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE,
) -> GenerationRequest:
    if not source_image:
        raise InvalidRequest(
            message="An image edit requires a source image.",
            code="missing_source_image",
            param="image",
        )
    _require_text(instruction, "prompt")
    route = select_route(ContentKind.IMAGE_EDIT)

    # The image model expects the picture before the instruction.
    return GenerationRequest(
        content_kind=ContentKind.IMAGE_EDIT,
        parts=(
            InlineBinaryPart(mime_type=mime_type, data=source_image),
            TextPart(instruction),
        ),
        model_id=route.model_id,
        config=route.config,
    )


def build_strategy_request(post_content: str, platform: Platform) -> GenerationRequest:
    _require_text(post_content, "content")
    route = select_route(ContentKind.STRATEGY_TEXT)
    prompt = STRATEGY_PROMPT_TEMPLATE.format(platform=platform.value, content=post_content)

    return GenerationRequest(
        content_kind=ContentKind.STRATEGY_TEXT,
        parts=(TextPart(prompt),),
        model_id=route.model_id,
        config=route.config,
    )


def build_chat_request(
    message: str,
    history: Iterable[ChatMessage] = (),
    flags: FeatureFlags | None = None,
    *,
    output_token_cap: int | None = None,
) -> GenerationRequest:
    _require_text(message, "message")
    route = select_route(
        ContentKind.CHAT_TURN,
        flags=flags,
        output_token_cap=output_token_cap,
    )

    return GenerationRequest(
        content_kind=ContentKind.CHAT_TURN,
        parts=(TextPart(message),),
        model_id=route.model_id,
        config=route.config,
        history=tuple(history),
    )


def build_video_request(
    prompt: str,
    start_frame: bytes | None = None,
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE,
) -> GenerationRequest:
    _require_text(prompt, "prompt")
    route = select_route(ContentKind.VIDEO)

    parts: tuple[TextPart | InlineBinaryPart, ...] = (
        TextPart(f"{VIDEO_STYLE_PREAMBLE}{prompt}"),
    )
    if start_frame:
        parts += (InlineBinaryPart(mime_type=mime_type, data=start_frame),)

    return GenerationRequest(
        content_kind=ContentKind.VIDEO,
        parts=parts,
        model_id=route.model_id,
        config=route.config,
    )


def decode_image_payload(value: str, param: str = "image") -> tuple[bytes, str]:
    """Decode a data URI or bare base64 string into bytes and a MIME type."""

    mime_type = DEFAULT_IMAGE_MIME_TYPE
    raw = value.strip()

    match = _DATA_URI_PATTERN.match(raw)
    if match:
        mime_type = match.group(1).lower().replace("image/jpg", "image/jpeg")
        raw = raw[match.end() :]
    elif raw.startswith("data:"):
        raise InvalidRequest(
            message="Only PNG and JPEG data URIs are supported.",
            code="unsupported_image_type",
            param=param,
        )

    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequest(
            message=f"{param} is not valid base64 image data.",
            code="invalid_image",
            param=param,
        ) from exc

    return data, mime_type


def _require_text(value: str, param: str) -> None:
    if not value or not value.strip():
        raise InvalidRequest(
            message=f"{param} must not be empty.",
            code="empty_input",
            param=param,
        )
