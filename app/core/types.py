from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidRequest


class ContentKind(str, Enum):
    IMAGE = "image"
    IMAGE_EDIT = "image_edit"
    VIDEO = "video"
    STRATEGY_TEXT = "strategy_text"
    CHAT_TURN = "chat_turn"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    PORTRAIT = "9:16"
    LANDSCAPE = "16:9"
    STANDARD = "4:3"


class QualityTier(str, Enum):
    STANDARD = "standard"
    HIGH = "high"


class Platform(str, Enum):
    INSTAGRAM = "Instagram"
    TWITTER = "X (Twitter)"
    LINKEDIN = "LinkedIn"
    TIKTOK = "TikTok"
    FACEBOOK = "Facebook"
    THREADS = "Threads"


class GroundingTool(str, Enum):
    GOOGLE_SEARCH = "google_search"
    GOOGLE_MAPS = "google_maps"


class ChatFeature(str, Enum):
    SEARCH = "search"
    MAPS = "maps"
    REASONING = "reasoning"
    NONE = "none"


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str


@dataclass(frozen=True, slots=True)
class InlineBinaryPart:
    mime_type: str
    data: bytes


PayloadPart = Union[TextPart, InlineBinaryPart]


@dataclass(frozen=True, slots=True)
class LatLng:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidRequest(
                message=f"latitude must be within [-90, 90], got {self.latitude}.",
                param="location.latitude",
            )
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidRequest(
                message=f"longitude must be within [-180, 180], got {self.longitude}.",
                param="location.longitude",
            )


@dataclass(frozen=True, slots=True)
class FeatureFlags:
    use_search_grounding: bool = False
    use_maps_grounding: bool = False
    use_extended_reasoning: bool = False
    location: LatLng | None = None

    def active_feature(self) -> ChatFeature:
        """Resolve the effective feature, search > maps > reasoning."""
        if self.use_search_grounding:
            return ChatFeature.SEARCH
        if self.use_maps_grounding:
            return ChatFeature.MAPS
        if self.use_extended_reasoning:
            return ChatFeature.REASONING
        return ChatFeature.NONE


@dataclass(frozen=True, slots=True)
class RouteConfig:
    image_size: str | None = None
    aspect_ratio: str | None = None
    tools: tuple[GroundingTool, ...] = ()
    lat_lng: LatLng | None = None
    thinking_budget: int | None = None
    max_output_tokens: int | None = None
    response_mime_type: str | None = None
    response_schema: dict[str, Any] | None = None
    number_of_videos: int | None = None
    resolution: str | None = None

    def __post_init__(self) -> None:
        # The backend rejects a thinking budget combined with an output cap.
        if self.thinking_budget is not None and self.max_output_tokens is not None:
            raise InvalidRequest(
                message="thinking_budget and max_output_tokens cannot be combined.",
                code="unsupported_combination",
                param="max_output_tokens",
            )


@dataclass(frozen=True, slots=True)
class Route:
    model_id: str
    config: RouteConfig = field(default_factory=RouteConfig)


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: str
    text: str

    def __post_init__(self) -> None:
        if self.role not in {"user", "model"}:
            raise InvalidRequest(
                message=f"Unsupported chat role '{self.role}'. Use 'user' or 'model'.",
                param="history.role",
            )


ChatHistory = tuple[ChatMessage, ...]


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    content_kind: ContentKind
    parts: tuple[PayloadPart, ...]
    model_id: str
    config: RouteConfig = field(default_factory=RouteConfig)
    history: ChatHistory = ()

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts if isinstance(part, TextPart))

    @property
    def binary_parts(self) -> tuple[InlineBinaryPart, ...]:
        return tuple(part for part in self.parts if isinstance(part, InlineBinaryPart))


@dataclass(frozen=True, slots=True)
class Operation:
    """Snapshot of a backend long-running operation."""

    handle: Any
    done: bool
    result_uri: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ImageResult:
    data_uri: str


class StrategyAnalysis(BaseModel):
    sentiment_score: int = Field(alias="sentimentScore", ge=0, le=100)
    viral_probability: int = Field(alias="viralProbability", ge=0, le=100)
    tone: str
    hashtags: list[str]
    improvement_tips: list[str] = Field(alias="improvementTips")

    model_config = ConfigDict(extra="forbid", strict=True)


@dataclass(frozen=True, slots=True)
class WebCitation:
    uri: str
    title: str | None = None

    kind = "web"


@dataclass(frozen=True, slots=True)
class PlaceAnswerCitation:
    review_snippet_count: int
    title: str | None = None
    uri: str | None = None

    kind = "place_answer"


Citation = Union[WebCitation, PlaceAnswerCitation]


@dataclass(frozen=True, slots=True)
class ChatResult:
    text: str
    citations: tuple[Citation, ...] = ()


@dataclass(frozen=True, slots=True)
class VideoResult:
    uri: str
