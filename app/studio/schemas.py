from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.core.types import AspectRatio, Platform, QualityTier


class ImageGenerationRequest(BaseModel):
    prompt: str
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    quality: QualityTier = QualityTier.STANDARD

    model_config = ConfigDict(extra="forbid")


class ImageEditRequest(BaseModel):
    # Data URI or bare base64; optional here so a missing image is reported
    # as an invalid request rather than a schema error.
    image: str | None = None
    prompt: str = ""

    model_config = ConfigDict(extra="forbid")


class StrategyAnalysisRequest(BaseModel):
    content: str
    platform: Platform = Platform.INSTAGRAM

    model_config = ConfigDict(extra="forbid")


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class ChatFeatures(BaseModel):
    search: bool = False
    maps: bool = False
    thinking: bool = False
    location: Location | None = None


class ChatHistoryEntry(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatMessageRequest(BaseModel):
    message: str
    history: list[ChatHistoryEntry] = Field(default_factory=list)
    features: ChatFeatures = Field(default_factory=ChatFeatures)

    model_config = ConfigDict(extra="forbid")


class VideoGenerationRequest(BaseModel):
    prompt: str
    image: str | None = None

    model_config = ConfigDict(extra="forbid")
