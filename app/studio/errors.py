from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.core.errors import StudioError, map_backend_error

IMAGE_FAILURE_NOTICE = "Failed to generate/edit image. Please try again."
ANALYSIS_FAILURE_NOTICE = "Analysis failed. Please try again."
VIDEO_FAILURE_NOTICE = "Video generation failed. Ensure your API key has access to Veo."
CHAT_FAILURE_REPLY = "Sorry, I encountered an error. Please try again."


@dataclass
class ApiError(Exception):
    """Error wrapper carrying HTTP metadata and a user-facing notice."""

    status_code: int
    message: str
    error_type: str = "invalid_request"
    code: str | None = None
    param: str | None = None
    notice: str | None = None

    def to_error(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "type": self.error_type,
            "param": self.param,
            "code": self.code,
            "notice": self.notice,
        }


def map_studio_error(exc: Exception, notice: str | None = None) -> ApiError:
    """Map core failures to an API error with the notice shown to the user."""

    if isinstance(exc, ApiError):
        return exc

    error = exc if isinstance(exc, StudioError) else map_backend_error(exc)

    return ApiError(
        status_code=error.status_code,
        message=error.message,
        error_type=error.kind,
        code=error.code,
        param=error.param,
        notice=notice,
    )
