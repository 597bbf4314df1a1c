from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .errors import JobCancelled, NoPayload, Timeout
from .types import JobState, Operation, VideoResult

logger = logging.getLogger(__name__)

FetchStatus = Callable[[Operation], Awaitable[Operation]]
Sleep = Callable[[float], Awaitable[object]]


class VideoJobPoller:
    """Drive a submitted video operation to a terminal state.

    One poller owns one operation handle: status fetches are strictly
    sequential and never overlap. The loop suspends with ``sleep`` so other
    coroutines keep running while a job is in progress.
    """

    def __init__(
        self,
        fetch_status: FetchStatus,
        *,
        interval: float = 5.0,
        max_attempts: int | None = None,
        credential: str | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._fetch_status = fetch_status
        self._interval = interval
        self._max_attempts = max_attempts
        self._credential = credential
        self._sleep = sleep

        self.state = JobState.SUBMITTED
        self.fetch_count = 0

    async def run(
        self,
        operation: Operation,
        cancel_event: asyncio.Event | None = None,
    ) -> VideoResult:
        if not operation.done:
            self.state = JobState.POLLING

        while not operation.done:
            if self._max_attempts is not None and self.fetch_count >= self._max_attempts:
                self.state = JobState.TIMED_OUT
                raise Timeout(
                    message=(
                        f"Video generation did not finish after {self.fetch_count} "
                        f"status checks ({self.fetch_count * self._interval:.0f}s)."
                    ),
                )

            self._raise_if_cancelled(cancel_event)
            await self._sleep(self._interval)
            self._raise_if_cancelled(cancel_event)

            operation = await self._fetch_status(operation)
            self.fetch_count += 1
            logger.debug("Video operation status #%d: done=%s", self.fetch_count, operation.done)

        return self._finish(operation)

    def _finish(self, operation: Operation) -> VideoResult:
        if not operation.result_uri:
            self.state = JobState.FAILED
            detail = f": {operation.error}" if operation.error else ""
            raise NoPayload(
                message=f"Video generation failed or returned no URI{detail}.",
                code="no_video",
            )

        self.state = JobState.COMPLETED
        logger.info("Video operation completed after %d status checks", self.fetch_count)
        return VideoResult(uri=with_credential(operation.result_uri, self._credential))

    def _raise_if_cancelled(self, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.state = JobState.CANCELLED
            raise JobCancelled()


def with_credential(uri: str, credential: str | None) -> str:
    """Append the access key as a query parameter so the URI is directly fetchable."""

    if not credential:
        return uri

    scheme, netloc, path, query, fragment = urlsplit(uri)
    params = [(key, value) for key, value in parse_qsl(query, keep_blank_values=True) if key != "key"]
    params.append(("key", credential))
    return urlunsplit((scheme, netloc, path, urlencode(params), fragment))
