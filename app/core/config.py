"""Configuration loading and logging setup for the studio gateway."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent.parent

load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_MAX_POLL_ATTEMPTS = 120
DEFAULT_VIDEO_JOB_RETENTION_SECONDS = 3600.0
DEFAULT_VIDEO_JOB_MAX_FINISHED = 100


@dataclass(frozen=True, slots=True)
class Settings:
    api_key: str | None
    video_poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    video_max_poll_attempts: int | None = DEFAULT_MAX_POLL_ATTEMPTS
    chat_max_output_tokens: int | None = None
    video_job_retention_seconds: float = DEFAULT_VIDEO_JOB_RETENTION_SECONDS
    video_job_max_finished: int = DEFAULT_VIDEO_JOB_MAX_FINISHED
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment.

    Called per operation so a rotated credential is picked up without a
    restart.
    """

    max_attempts = _optional_int(os.getenv("VIDEO_MAX_POLL_ATTEMPTS"), DEFAULT_MAX_POLL_ATTEMPTS)
    # 0 disables the bound and polls until the backend reports completion.
    if max_attempts is not None and max_attempts <= 0:
        max_attempts = None

    return Settings(
        api_key=os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY") or None,
        video_poll_interval_seconds=float(
            os.getenv("VIDEO_POLL_INTERVAL_SECONDS", str(DEFAULT_POLL_INTERVAL_SECONDS))
        ),
        video_max_poll_attempts=max_attempts,
        chat_max_output_tokens=_optional_int(os.getenv("CHAT_MAX_OUTPUT_TOKENS"), None),
        video_job_retention_seconds=float(
            os.getenv("VIDEO_JOB_RETENTION_SECONDS", str(DEFAULT_VIDEO_JOB_RETENTION_SECONDS))
        ),
        video_job_max_finished=int(
            os.getenv("VIDEO_JOB_MAX_FINISHED", str(DEFAULT_VIDEO_JOB_MAX_FINISHED))
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request URL, and video URIs can carry the key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _optional_int(raw: str | None, default: int | None) -> int | None:
    if raw is None or not raw.strip():
        return default
    return int(raw)
