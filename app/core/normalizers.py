from __future__ import annotations

import base64
import logging
from typing import Any

from google.genai import types
from pydantic import ValidationError

from .errors import MalformedResponse, NoPayload
from .types import (
    ChatResult,
    Citation,
    ImageResult,
    Operation,
    PlaceAnswerCitation,
    StrategyAnalysis,
    WebCitation,
)

logger = logging.getLogger(__name__)

CHAT_FALLBACK_TEXT = "I couldn't generate a text response."


def extract_image(response: types.GenerateContentResponse) -> ImageResult:
    """Return the first inline image of the first candidate as a PNG data URI.

    A response without any binary part is a normal outcome (the backend may
    decline on safety grounds) and surfaces as ``NoPayload``.
    """

    for part in _first_candidate_parts(response):
        if part.inline_data is not None and part.inline_data.data:
            encoded = base64.b64encode(part.inline_data.data).decode("ascii")
            return ImageResult(data_uri=f"data:image/png;base64,{encoded}")

    finish_reason = _finish_reason(response)
    logger.warning("No image data found in response (finish_reason=%s)", finish_reason)
    raise NoPayload(
        message="No image data found in response.",
        code="no_image",
    )


def parse_strategy_analysis(response: types.GenerateContentResponse) -> StrategyAnalysis:
    text = response.text
    if not text:
        raise MalformedResponse(message="No analysis generated.", code="empty_analysis")

    try:
        return StrategyAnalysis.model_validate_json(text)
    except ValidationError as exc:
        first_error = exc.errors()[0]
        location = ".".join(str(item) for item in first_error["loc"]) or "body"
        raise MalformedResponse(
            message=f"Strategy analysis did not match the schema ({location}: {first_error['msg']}).",
            code="invalid_analysis",
            param=location,
        ) from exc


def extract_chat(response: types.GenerateContentResponse) -> ChatResult:
    text = response.text or CHAT_FALLBACK_TEXT
    return ChatResult(text=text, citations=extract_citations(response))


def extract_citations(response: types.GenerateContentResponse) -> tuple[Citation, ...]:
    candidates = response.candidates or []
    if not candidates or candidates[0].grounding_metadata is None:
        return ()

    citations: list[Citation] = []
    for chunk in candidates[0].grounding_metadata.grounding_chunks or []:
        if chunk.web is not None and chunk.web.uri:
            citations.append(WebCitation(uri=chunk.web.uri, title=chunk.web.title))
            continue

        maps = chunk.maps
        if maps is not None and maps.place_answer_sources is not None:
            snippets = maps.place_answer_sources.review_snippets or []
            if snippets:
                citations.append(
                    PlaceAnswerCitation(
                        review_snippet_count=len(snippets),
                        title=maps.title,
                        uri=maps.uri,
                    )
                )

    return tuple(citations)


def to_operation(operation: types.GenerateVideosOperation) -> Operation:
    uri = None
    response = operation.response
    if response is not None and response.generated_videos:
        video = response.generated_videos[0].video
        if video is not None:
            uri = video.uri

    return Operation(
        handle=operation,
        done=bool(operation.done),
        result_uri=uri,
        error=_operation_error(operation.error),
    )


def _operation_error(error: dict[str, Any] | None) -> str | None:
    if not error:
        return None
    return str(error.get("message") or error)


def _first_candidate_parts(response: types.GenerateContentResponse) -> list[types.Part]:
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return []
    return candidates[0].content.parts or []


def _finish_reason(response: types.GenerateContentResponse) -> str | None:
    candidates = response.candidates or []
    if not candidates or candidates[0].finish_reason is None:
        return None
    return str(candidates[0].finish_reason)
