"""
Background Visit Dispatch

Delivers visit payloads without holding up the redirect that produced them.

- VisitDispatcher schedules each delivery as a detached asyncio task. The
  redirect never awaits it; failures end up in the log only.
- HttpVisitSubmitter posts the payload to /api/track-visit.
- DirectVisitSubmitter stores it in-process. Background work cannot use
  the request's session as it's closed after the endpoint returns, so it
  opens its own.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Optional

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from linkpulse.services.visit_logger import VisitIngestionService

logger = logging.getLogger(__name__)

TRACK_VISIT_PATH = "/api/track-visit"

VisitSubmitter = Callable[[Mapping[str, Any]], Awaitable[None]]


def build_track_visit_url(base_url: str) -> str:
    """Absolute address of the ingestion endpoint on this service."""
    return f"{base_url.rstrip('/')}{TRACK_VISIT_PATH}"


class HttpVisitSubmitter:
    """Posts visit payloads to the track-visit endpoint."""

    def __init__(self, client: httpx.AsyncClient, track_visit_url: str):
        self.client = client
        self.track_visit_url = track_visit_url

    async def __call__(self, payload: Mapping[str, Any]) -> None:
        response = await self.client.post(self.track_visit_url, json=dict(payload))

        body: Optional[dict] = None
        try:
            body = response.json()
        except ValueError:
            pass

        if not response.is_success or not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else response.text
            logger.warning(
                f"Visit tracking rejected for {payload.get('urlId')}: "
                f"HTTP {response.status_code} {error}"
            )


class DirectVisitSubmitter:
    """Stores visit payloads in-process with a dedicated session."""

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def __call__(self, payload: Mapping[str, Any]) -> None:
        async with self.session_maker() as session:
            await VisitIngestionService(session).ingest(payload)


class VisitDispatcher:
    """
    Fire-and-forget runner for visit submissions.

    Keeps a strong reference to every task until it finishes, since the
    event loop only holds weak references to tasks.
    """

    def __init__(self, submit: VisitSubmitter):
        """
        Args:
            submit: Coroutine function delivering one payload
        """
        self.submit = submit
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of dispatches still in flight."""
        return len(self._pending)

    def dispatch(self, payload: Mapping[str, Any]) -> asyncio.Task:
        """
        Start delivering a payload and return immediately.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(self._deliver(dict(payload)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, payload: dict) -> None:
        try:
            await self.submit(payload)
        except Exception as e:
            logger.error(
                f"Visit tracking failed for {payload.get('urlId')}: {e!r}",
                exc_info=True
            )

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for in-flight dispatches, cancelling whatever is left after timeout.

        Called on application shutdown.
        """
        if not self._pending:
            return

        done, not_done = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Dropped {len(not_done)} visit dispatches on shutdown")
