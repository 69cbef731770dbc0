"""
Queue strategies using Strategy Pattern.
Allows switching between different queue backends (Redis Streams, In-Memory).
"""

import logging
import socket
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Optional

from pydantic import ValidationError
from redis.exceptions import RedisError, ResponseError

from linksprint.exceptions import UnavailableError
from .models import ClickEvent

logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for queue strategies.

    This is the Strategy Pattern interface - allows multiple queue implementations
    without changing the recorder/worker code. Transport failures raise
    UnavailableError.
    """

    @abstractmethod
    async def publish(self, queue_name: str, message: ClickEvent) -> None:
        """Append one event to the queue."""
        pass

    @abstractmethod
    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """
        Consume messages from the queue.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of messages to retrieve
            block_time: Time to wait for messages (milliseconds)

        Returns:
            List of ClickEvent messages, each carrying its message_id
        """
        pass

    @abstractmethod
    async def ack(self, queue_name: str, message_ids: List[str]) -> None:
        """Acknowledge messages (mark as processed)."""
        pass

    @abstractmethod
    async def get_queue_length(self, queue_name: str) -> int:
        """Number of messages currently held by the queue."""
        pass

    async def close(self) -> None:
        """Release connections. Backends without any keep the default."""
        return None


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams implementation for the click queue.

    How it works:
    1. Producer publishes messages using XADD
    2. Consumer reads messages using XREADGROUP
    3. Consumer acknowledges messages using XACK
    4. Unacknowledged messages stay pending and can be reclaimed
    """

    def __init__(
        self,
        redis_client,
        consumer_group: str = "click_workers",
        consumer_name: Optional[str] = None,
        claim_idle_ms: int = 60000,
    ):
        """
        Args:
            redis_client: redis.asyncio.Redis instance (decode_responses=True)
            consumer_group: Name of consumer group for workers
            consumer_name: Stable name of this consumer; defaults to the hostname
                so a restarted worker finds its own pending entries again
            claim_idle_ms: Entries left pending by other consumers for this long
                are claimed with XAUTOCLAIM; 0 disables claiming
        """
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = consumer_name or socket.gethostname()
        self.claim_idle_ms = claim_idle_ms
        self._initialized_streams = set()

    async def _ensure_stream_exists(self, queue_name: str):
        if queue_name in self._initialized_streams:
            return

        try:
            # MKSTREAM creates the stream together with the group
            await self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id="0",
                mkstream=True
            )
            logger.info("Created Redis stream %s", queue_name)
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise UnavailableError(f"Redis stream setup failed: {e}") from e
        except RedisError as e:
            raise UnavailableError(f"Redis stream setup failed: {e}") from e

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, message: ClickEvent) -> None:
        await self._ensure_stream_exists(queue_name)
        try:
            await self.redis.xadd(queue_name, {"data": message.model_dump_json()})
        except RedisError as e:
            raise UnavailableError(f"Redis publish failed: {e}") from e

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """
        Pending entries come first: anything delivered to this consumer but
        never acked (a batch whose write failed, or a crash before XACK) is
        returned again before new messages are read. Delivery is therefore
        at-least-once.
        """
        await self._ensure_stream_exists(queue_name)
        await self._claim_stale(queue_name, batch_size)

        # '0' replays this consumer's pending entries, without blocking
        messages = await self._read(queue_name, "0", batch_size, None)
        if not any(stream_messages for _name, stream_messages in messages):
            # '>' means "messages never delivered to other consumers"
            messages = await self._read(queue_name, ">", batch_size, block_time)

        events = []
        for _stream_name, stream_messages in messages:
            for message_id, message_data in stream_messages:
                try:
                    # Entries trimmed from the stream come back without data
                    event = ClickEvent.model_validate_json((message_data or {})["data"])
                except (KeyError, ValidationError) as e:
                    # Poison message: ack it so it is not redelivered forever
                    logger.warning("Dropping unparseable message %s: %s", message_id, e)
                    await self.ack(queue_name, [message_id])
                    continue
                event.message_id = message_id
                events.append(event)

        return events

    async def _read(self, queue_name: str, stream_id: str, batch_size: int, block_time: Optional[int]):
        try:
            messages = await self.redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={queue_name: stream_id},
                count=batch_size,
                block=block_time
            )
        except RedisError as e:
            raise UnavailableError(f"Redis consume failed: {e}") from e
        return messages or []

    async def _claim_stale(self, queue_name: str, batch_size: int) -> None:
        """Take over entries another consumer left pending for claim_idle_ms."""
        if not self.claim_idle_ms:
            return
        try:
            # Claimed entries join this consumer's pending list and are read via '0'
            await self.redis.xautoclaim(
                queue_name,
                self.consumer_group,
                self.consumer_name,
                min_idle_time=self.claim_idle_ms,
                start_id="0-0",
                count=batch_size,
                justid=True
            )
        except RedisError as e:
            raise UnavailableError(f"Redis claim failed: {e}") from e

    async def ack(self, queue_name: str, message_ids: List[str]) -> None:
        if not message_ids:
            return
        try:
            await self.redis.xack(queue_name, self.consumer_group, *message_ids)
        except RedisError as e:
            raise UnavailableError(f"Redis ack failed: {e}") from e

    async def get_queue_length(self, queue_name: str) -> int:
        try:
            return await self.redis.xlen(queue_name)
        except RedisError as e:
            raise UnavailableError(f"Redis xlen failed: {e}") from e

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryQueue(QueueStrategy):
    """
    In-memory queue implementation using Python deque.

    Not persistent and not shared between processes, so it only works with
    the click worker embedded in the API process.
    Messages are removed on consume; ack is a no-op.
    """

    def __init__(self):
        self._queues: Dict[str, Deque[ClickEvent]] = {}

    def _get_queue(self, queue_name: str) -> Deque[ClickEvent]:
        return self._queues.setdefault(queue_name, deque())

    async def publish(self, queue_name: str, message: ClickEvent) -> None:
        self._get_queue(queue_name).append(message)

    async def consume(
        self,
        queue_name: str,
        batch_size: int = 1,
        block_time: int = 1000
    ) -> List[ClickEvent]:
        """block_time is ignored: an empty queue returns immediately."""
        queue = self._get_queue(queue_name)
        messages = []
        while queue and len(messages) < batch_size:
            messages.append(queue.popleft())
        return messages

    async def ack(self, queue_name: str, message_ids: List[str]) -> None:
        return None

    async def get_queue_length(self, queue_name: str) -> int:
        return len(self._get_queue(queue_name))
