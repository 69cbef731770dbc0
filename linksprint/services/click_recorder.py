"""
Fire-and-forget click signals.

The redirect path must never wait on, or fail because of, click tracking.
ClickRecorder schedules the cache counter increment and the queue publish
as background asyncio tasks and only logs their failures. Signals still
pending when the process crashes are lost; that is acceptable for an
approximate counter and best-effort analytics.
"""

import asyncio
import logging
from typing import Optional, Set

from linksprint.cache.keys import clicks_key
from linksprint.cache.strategies import CacheStrategy
from linksprint.exceptions import UnavailableError
from linksprint.queue.models import ClickEvent
from linksprint.queue.strategies import QueueStrategy

logger = logging.getLogger(__name__)


class ClickRecorder:
    def __init__(
        self,
        cache: CacheStrategy,
        queue: Optional[QueueStrategy] = None,
        queue_name: str = "click_events",
    ):
        self.cache = cache
        self.queue = queue
        self.queue_name = queue_name
        # The event loop only keeps weak references to tasks
        self._pending: Set[asyncio.Task] = set()

    def record_click(self, short_code: str) -> None:
        """Schedule an increment of clicks:{code}."""
        self._spawn(self._increment(short_code))

    def publish_event(self, event: ClickEvent) -> None:
        """Schedule a publish of the click event for the click worker."""
        if self.queue is None:
            return
        self._spawn(self._publish(event))

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled signal to finish (shutdown, tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Click signal task crashed", exc_info=error)

    async def _increment(self, short_code: str) -> None:
        try:
            await self.cache.increment(clicks_key(short_code))
        except UnavailableError as e:
            logger.warning("Click counter increment failed for %s: %s", short_code, e)

    async def _publish(self, event: ClickEvent) -> None:
        try:
            await self.queue.publish(self.queue_name, event)
        except UnavailableError as e:
            logger.warning("Click event publish failed for %s: %s", event.short_code, e)
