from __future__ import annotations

import logging
from dataclasses import dataclass

from google.genai import errors as genai_errors

logger = logging.getLogger(__name__)


@dataclass
class StudioError(Exception):
    status_code: int
    message: str
    code: str | None = None
    param: str | None = None

    kind = "studio_error"

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidRequest(StudioError):
    """Rejected locally; never sent to the backend."""

    status_code: int = 400
    message: str = "Invalid request."
    code: str | None = "invalid_request"

    kind = "invalid_request"


@dataclass
class NoPayload(StudioError):
    status_code: int = 422
    message: str = "The backend returned no usable content."
    code: str | None = "no_payload"

    kind = "no_payload"


@dataclass
class MalformedResponse(StudioError):
    status_code: int = 502
    message: str = "The backend response did not match the expected shape."
    code: str | None = "malformed_response"

    kind = "malformed_response"


@dataclass
class TransportFailure(StudioError):
    status_code: int = 502
    message: str = "The call to the generation backend failed."
    code: str | None = "transport_failure"

    kind = "transport_failure"


@dataclass
class Timeout(StudioError):
    status_code: int = 504
    message: str = "The generation job did not finish in time."
    code: str | None = "timeout"

    kind = "timeout"


@dataclass
class JobCancelled(StudioError):
    status_code: int = 409
    message: str = "The generation job was cancelled."
    code: str | None = "cancelled"

    kind = "cancelled"


def map_backend_error(exc: Exception) -> StudioError:
    """Map google-genai and transport exceptions to the studio taxonomy."""

    if isinstance(exc, StudioError):
        return exc

    if isinstance(exc, genai_errors.APIError):
        status_code = 429 if exc.code == 429 else 502
        return TransportFailure(
            status_code=status_code,
            message=f"Backend call failed ({exc.code} {exc.status}): {exc.message}",
            code="rate_limited" if exc.code == 429 else "backend_error",
        )

    logger.exception("Unexpected error while calling the generation backend")
    return TransportFailure(
        message=f"Unexpected backend failure: {exc}",
        code="transport_failure",
    )
