"""
Click Worker

Consumes click events published by the redirect endpoint and stores them
as rows in the `analytics` table.

Architecture:
- Consumes messages from the queue in batches
- Writes each batch in a single transaction
- Acknowledges a batch only after it is stored. A failed batch stays in
  the consumer's pending list and RedisStreamQueue.consume returns it
  again on the next call, so rows can be written twice but not lost.
  The in-memory queue drops a failed batch.
"""

import asyncio
import logging
import signal
import sys
from typing import List

from linksprint.config import settings
from linksprint.database.connection import SessionLocal
from linksprint.exceptions import UnavailableError
from linksprint.queue.models import ClickEvent
from linksprint.queue.strategies import QueueStrategy
from linksprint.storage.strategies import SQLAlchemyStore

logger = logging.getLogger(__name__)


class ClickWorker:
    def __init__(
        self,
        queue: QueueStrategy,
        session_factory=SessionLocal,
        queue_name: str = settings.queue_name,
        batch_size: int = settings.queue_batch_size,
        block_ms: int = settings.queue_block_ms,
        idle_sleep: float = 1.0,
    ):
        self.queue = queue
        self.session_factory = session_factory
        self.queue_name = queue_name
        self.batch_size = batch_size
        self.block_ms = block_ms
        self.idle_sleep = idle_sleep
        self.running = False
        self.processed_count = 0

    async def process_once(self) -> int:
        """Consume, store and acknowledge one batch. Returns the number of rows written."""
        messages = await self.queue.consume(
            queue_name=self.queue_name,
            batch_size=self.batch_size,
            block_time=self.block_ms,
        )
        if not messages:
            return 0

        stored = self._store(messages)

        message_ids = [msg.message_id for msg in messages if msg.message_id]
        await self.queue.ack(self.queue_name, message_ids)

        self.processed_count += len(messages)
        logger.debug("Stored %d of %d click events", stored, len(messages))
        return stored

    def _store(self, messages: List[ClickEvent]) -> int:
        db = self.session_factory()
        try:
            return SQLAlchemyStore(db).insert_clicks(messages)
        finally:
            db.close()

    async def start(self):
        """Loop until stop() is called or the task is cancelled."""
        self.running = True
        logger.info("Click worker started (queue=%s, batch=%d)", self.queue_name, self.batch_size)

        while self.running:
            try:
                stored = await self.process_once()
                if not stored:
                    # The in-memory queue does not block on empty reads
                    await asyncio.sleep(self.idle_sleep)
            except asyncio.CancelledError:
                logger.info("Click worker cancelled")
                raise
            except UnavailableError as e:
                # Unacked messages stay pending; the next consume replays them
                logger.error("Click batch failed: %s", e)
                await asyncio.sleep(self.idle_sleep)

        logger.info("Click worker stopped after %d events", self.processed_count)

    def stop(self):
        self.running = False

    def _signal_handler(self, signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        self.stop()


async def main():
    """
    Standalone entry point.

    Usage:
        python -m linksprint.click_processor.click_worker
    """
    from linksprint.logging_config import configure_logging
    from linksprint.queue.factory import QueueFactory, QueueBackend

    configure_logging(settings.log_level)
    logger.info(
        "Click worker: environment=%s queue_backend=%s",
        settings.environment,
        settings.queue_backend,
    )

    queue = QueueFactory.create(QueueBackend(settings.queue_backend))
    worker = ClickWorker(queue=queue)

    signal.signal(signal.SIGINT, worker._signal_handler)
    signal.signal(signal.SIGTERM, worker._signal_handler)

    try:
        await worker.start()
    except Exception:
        logger.exception("Click worker crashed")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
