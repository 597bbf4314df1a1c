from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from urllib.parse import parse_qs, urlsplit

import pytest
from google.genai import errors as genai_errors
from google.genai import types

import app.core.generation as generation
from app.core.config import Settings
from app.core.errors import InvalidRequest, MalformedResponse, NoPayload, TransportFailure
from app.core.routing import EXTENDED_REASONING_MODEL, FAST_IMAGE_MODEL, FAST_TEXT_MODEL, FAST_VIDEO_MODEL
from app.core.types import (
    AspectRatio,
    ChatMessage,
    FeatureFlags,
    LatLng,
    Platform,
    QualityTier,
    RouteConfig,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
VIDEO_URI = "https://generativelanguage.test/v1beta/files/vid:download?alt=media"

SETTINGS = Settings(
    api_key="test-key",
    video_poll_interval_seconds=0,
    video_max_poll_attempts=10,
)


def _content_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def _video_operation(done: bool, uri: str | None = None) -> types.GenerateVideosOperation:
    response = None
    if uri is not None:
        response = types.GenerateVideosResponse(
            generated_videos=[types.GeneratedVideo(video=types.Video(uri=uri))]
        )
    return types.GenerateVideosOperation(name="operations/vid", done=done, response=response)


class FakeModels:
    def __init__(self, response=None, error: Exception | None = None, operation=None):
        self.response = response
        self.error = error
        self.operation = operation
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response

    async def generate_videos(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.operation


class FakeOperations:
    def __init__(self, snapshots: list[types.GenerateVideosOperation]):
        self.snapshots = list(snapshots)
        self.calls = 0

    async def get(self, operation):
        self.calls += 1
        return self.snapshots.pop(0)


class FakeChat:
    def __init__(self, response):
        self.response = response
        self.sent: list[str] = []

    async def send_message(self, message):
        self.sent.append(message)
        return self.response


class FakeChats:
    def __init__(self, response):
        self.chat = FakeChat(response)
        self.created: dict | None = None

    def create(self, **kwargs):
        self.created = kwargs
        return self.chat


@pytest.fixture()
def fake_client(monkeypatch):
    client = SimpleNamespace(
        aio=SimpleNamespace(
            models=FakeModels(),
            operations=FakeOperations([]),
            chats=FakeChats(None),
        ),
        created=0,
    )

    def fake_create_client(settings=None):
        client.created += 1
        return client

    monkeypatch.setattr(generation, "create_client", fake_create_client)
    return client


def test_generate_image_scenario(fake_client):
    fake_client.aio.models.response = _content_response(
        types.Part(inline_data=types.Blob(mime_type="image/png", data=PNG_BYTES))
    )

    result = asyncio.run(
        generation.generate_image(
            "a red cube",
            AspectRatio.SQUARE,
            QualityTier.STANDARD,
            settings=SETTINGS,
        )
    )

    assert result.data_uri.startswith("data:image/png;base64,")
    call = fake_client.aio.models.calls[0]
    assert call["model"] == FAST_IMAGE_MODEL
    assert call["config"].image_config.aspect_ratio == "1:1"
    assert call["config"].image_config.image_size is None
    assert "a red cube" in call["contents"][0].parts[0].text


def test_generate_image_high_quality_sends_resolution_hint(fake_client):
    fake_client.aio.models.response = _content_response(
        types.Part(inline_data=types.Blob(mime_type="image/png", data=PNG_BYTES))
    )

    asyncio.run(generation.generate_image("city", AspectRatio.PORTRAIT, QualityTier.HIGH, settings=SETTINGS))

    config = fake_client.aio.models.calls[0]["config"]
    assert config.image_config.image_size == "2K"
    assert config.image_config.aspect_ratio == "9:16"


def test_generate_image_declined_is_no_payload(fake_client):
    fake_client.aio.models.response = _content_response(types.Part(text="I can't draw that."))

    with pytest.raises(NoPayload):
        asyncio.run(generation.generate_image("forbidden", settings=SETTINGS))


def test_edit_image_sends_binary_then_text(fake_client):
    fake_client.aio.models.response = _content_response(
        types.Part(inline_data=types.Blob(mime_type="image/png", data=b"edited"))
    )

    asyncio.run(generation.edit_image(PNG_BYTES, "add a glow", settings=SETTINGS))

    parts = fake_client.aio.models.calls[0]["contents"][0].parts
    assert parts[0].inline_data.data == PNG_BYTES
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[1].text == "add a glow"


def test_edit_image_without_source_never_reaches_backend(fake_client):
    with pytest.raises(InvalidRequest):
        asyncio.run(generation.edit_image(None, "", settings=SETTINGS))

    assert fake_client.created == 0
    assert fake_client.aio.models.calls == []


def test_analyze_strategy_parses_structured_response(fake_client):
    payload = {
        "sentimentScore": 70,
        "viralProbability": 55,
        "tone": "Professional",
        "hashtags": ["#antcpu"],
        "improvementTips": ["Shorten the hook"],
    }
    fake_client.aio.models.response = _content_response(types.Part(text=json.dumps(payload)))

    analysis = asyncio.run(
        generation.analyze_strategy("New silicon drops Friday.", Platform.TWITTER, settings=SETTINGS)
    )

    assert analysis.model_dump(by_alias=True) == payload
    call = fake_client.aio.models.calls[0]
    assert call["model"] == FAST_TEXT_MODEL
    assert call["config"].response_mime_type == "application/json"
    assert call["config"].response_json_schema["additionalProperties"] is False


def test_analyze_strategy_malformed_response(fake_client):
    fake_client.aio.models.response = _content_response(types.Part(text='{"tone": "Edgy"}'))

    with pytest.raises(MalformedResponse):
        asyncio.run(generation.analyze_strategy("post", Platform.TIKTOK, settings=SETTINGS))


def test_backend_api_error_becomes_transport_failure(fake_client):
    fake_client.aio.models.error = genai_errors.ServerError(
        503,
        {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}},
    )

    with pytest.raises(TransportFailure) as excinfo:
        asyncio.run(generation.generate_image("a red cube", settings=SETTINGS))

    assert excinfo.value.code == "backend_error"


def test_unexpected_error_becomes_transport_failure(fake_client):
    fake_client.aio.models.error = ConnectionError("network unreachable")

    with pytest.raises(TransportFailure):
        asyncio.run(generation.generate_image("a red cube", settings=SETTINGS))


def test_missing_credential_fails_at_backend_boundary(monkeypatch):
    def failing_create_client(settings=None):
        raise ValueError("Missing key inputs argument!")

    monkeypatch.setattr(generation, "create_client", failing_create_client)

    with pytest.raises(TransportFailure):
        asyncio.run(generation.generate_image("a red cube", settings=Settings(api_key=None)))


def test_send_chat_message_with_maps_grounding(fake_client):
    fake_client.aio.chats = FakeChats(_content_response(types.Part(text="Try the cafe on 5th.")))
    location = LatLng(latitude=40.7128, longitude=-74.006)
    history = (ChatMessage("user", "hi"), ChatMessage("model", "hello"))

    result = asyncio.run(
        generation.send_chat_message(
            "coffee nearby?",
            history,
            FeatureFlags(use_maps_grounding=True, location=location),
            settings=SETTINGS,
        )
    )

    assert result.text == "Try the cafe on 5th."
    created = fake_client.aio.chats.created
    assert created["model"] == FAST_TEXT_MODEL
    config = created["config"]
    assert config.tools[0].google_maps is not None
    lat_lng = config.tool_config.retrieval_config.lat_lng
    assert (lat_lng.latitude, lat_lng.longitude) == (40.7128, -74.006)
    assert [content.role for content in created["history"]] == ["user", "model"]
    assert fake_client.aio.chats.chat.sent == ["coffee nearby?"]


def test_send_chat_message_with_reasoning_omits_output_cap(fake_client):
    fake_client.aio.chats = FakeChats(_content_response(types.Part(text="Deep answer")))
    settings = Settings(api_key="k", chat_max_output_tokens=512)

    asyncio.run(
        generation.send_chat_message(
            "explain",
            (),
            FeatureFlags(use_extended_reasoning=True),
            settings=settings,
        )
    )

    created = fake_client.aio.chats.created
    assert created["model"] == EXTENDED_REASONING_MODEL
    assert created["config"].thinking_config.thinking_budget == 32768
    assert created["config"].max_output_tokens is None


def test_send_chat_message_does_not_mutate_history(fake_client):
    fake_client.aio.chats = FakeChats(_content_response(types.Part(text="ok")))
    history = [ChatMessage("user", "first")]

    asyncio.run(generation.send_chat_message("second", history, settings=SETTINGS))

    assert history == [ChatMessage("user", "first")]


def test_generate_video_polls_until_done(fake_client):
    fake_client.aio.models.operation = _video_operation(done=False)
    fake_client.aio.operations = FakeOperations(
        [
            _video_operation(done=False),
            _video_operation(done=False),
            _video_operation(done=True, uri=VIDEO_URI),
        ]
    )

    result = asyncio.run(generation.generate_video("neon city", PNG_BYTES, settings=SETTINGS))

    assert fake_client.aio.operations.calls == 3
    assert parse_qs(urlsplit(result.uri).query)["key"] == ["test-key"]
    call = fake_client.aio.models.calls[0]
    assert call["model"] == FAST_VIDEO_MODEL
    assert call["image"].image_bytes == PNG_BYTES
    assert call["config"].number_of_videos == 1
    assert call["config"].resolution == "720p"
    assert call["config"].aspect_ratio == "16:9"


def test_generate_video_without_uri_is_no_payload(fake_client):
    fake_client.aio.models.operation = _video_operation(done=False)
    fake_client.aio.operations = FakeOperations([_video_operation(done=True)])

    with pytest.raises(NoPayload):
        asyncio.run(generation.generate_video("neon city", settings=SETTINGS))

    assert fake_client.aio.operations.calls == 1
    assert fake_client.aio.models.calls[0]["image"] is None


def test_to_generate_config_is_none_for_empty_route():
    assert generation.to_generate_config(RouteConfig()) is None
