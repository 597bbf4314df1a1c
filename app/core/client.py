from __future__ import annotations

import logging

from google import genai

from .config import Settings, load_settings

logger = logging.getLogger(__name__)


def create_client(settings: Settings | None = None) -> genai.Client:
    """Build a fresh backend client; never cached so key rotation is honored.

    Without a key `genai.Client` raises at construction. Callers build the
    client inside the same guarded block as the backend call, so that failure
    surfaces as `TransportFailure` for the operation rather than at startup.
    """

    settings = settings or load_settings()

    if not settings.api_key:
        logger.warning("API_KEY is missing from environment.")

    return genai.Client(api_key=settings.api_key)
