"""Background indexing worker.

Reads content change events from a Redis Stream consumer group and dispatches
each one through the indexing pipeline. Supports graceful shutdown.
"""

import asyncio
import logging
import os
import signal
import socket
from collections.abc import Callable
from types import FrameType
from typing import Protocol

from redis import asyncio as redis

from packages.clients.postgres_content_store import PostgresContentStore
from packages.common.config import get_config
from packages.common.logging import setup_logging
from packages.core.errors import IndexWriteError
from packages.core.events import ContentChangedEvent
from packages.core.ports.repository_session import RepositorySession, SimpleRepositorySession
from packages.core.use_cases.dispatch_event import DispatchResult, IndexingDispatcher
from packages.indexing.handlers import build_default_handlers, start_handlers, stop_handlers
from packages.indexing.registry import get_registry
from packages.ingest.adapters.redis_streams_consumer import RedisChangeEventConsumer, StreamBatch
from packages.ingest.adapters.redis_streams_publisher import RedisChangeEventPublisher
from packages.ingest.normalizer import HtmlTextExtractor
from packages.search.elasticsearch_index import ElasticsearchSearchIndex

logger = logging.getLogger(__name__)


class ChangeEventSource(Protocol):
    """Protocol for the change event consumer."""

    async def read(self, *, count: int = 1, block_ms: int | None = 5000) -> StreamBatch: ...

    async def reclaim(self, *, count: int = 1, min_idle_ms: int = 60000) -> StreamBatch: ...

    async def ack(self, message_ids: list[str]) -> None: ...


class EventDispatcher(Protocol):
    """Protocol for the synchronous dispatcher."""

    def dispatch(
        self, repository_session: RepositorySession, event: ContentChangedEvent
    ) -> DispatchResult: ...


class IndexingWorker:
    """Background worker for dispatching change events.

    Events of one batch are dispatched concurrently in worker threads. A message
    is acknowledged once its event was dispatched; events whose index writes
    failed stay pending and are reclaimed by a later poll once they have been
    idle for ``reclaim_idle_ms``.
    """

    def __init__(
        self,
        consumer: ChangeEventSource,
        dispatcher: EventDispatcher,
        session_factory: Callable[[], RepositorySession],
        *,
        batch_size: int = 10,
        block_ms: int | None = 5000,
        reclaim_idle_ms: int = 60000,
    ) -> None:
        """Initialize IndexingWorker.

        Args:
            consumer: Source of change events.
            dispatcher: Dispatcher applying events to the search index.
            session_factory: Creates one repository session per event.
            batch_size: Maximum events handled per poll.
            block_ms: Block timeout for reading new events in milliseconds.
            reclaim_idle_ms: Idle time after which un-acked events are retried.
        """
        self.consumer = consumer
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.batch_size = batch_size
        self.block_ms = block_ms
        self.reclaim_idle_ms = reclaim_idle_ms
        self._stop_flag = False

        logger.info("Initialized IndexingWorker (batch_size=%s)", batch_size)

    def should_stop(self) -> bool:
        return self._stop_flag

    def signal_stop(self) -> None:
        """Signal worker to stop gracefully."""
        logger.info("Received stop signal")
        self._stop_flag = True

    async def poll_once(self) -> int:
        """Reclaim stale pending events, top up with new ones and dispatch them.

        Returns:
            int: Number of events successfully dispatched.

        Raises:
            Does not raise - handles errors internally.
        """
        try:
            events, malformed = await self.consumer.reclaim(
                count=self.batch_size, min_idle_ms=self.reclaim_idle_ms
            )

            remaining = self.batch_size - len(events)
            if remaining > 0:
                # Do not block on new messages while reclaimed ones are waiting.
                new_events, new_malformed = await self.consumer.read(
                    count=remaining, block_ms=None if events else self.block_ms
                )
                events = [*events, *new_events]
                malformed = [*malformed, *new_malformed]

            if malformed:
                await self.consumer.ack(malformed)
            if not events:
                return 0

            outcomes = await asyncio.gather(
                *(self._dispatch(message_id, event) for message_id, event in events)
            )
            handled = [message_id for message_id in outcomes if message_id is not None]
            await self.consumer.ack(handled)
            return len(handled)

        except Exception:
            logger.exception("Error in poll_once")
            return 0

    async def run(self) -> None:
        """Run worker continuously until stopped."""
        logger.info("Starting indexing worker loop")

        try:
            while not self.should_stop():
                await self.poll_once()

        except asyncio.CancelledError:
            logger.info("Worker cancelled")
        finally:
            logger.info("Worker stopped")

    async def _dispatch(self, message_id: str, event: ContentChangedEvent) -> str | None:
        try:
            result = await asyncio.to_thread(self.dispatcher.dispatch, self.session_factory(), event)
        except IndexWriteError:
            logger.exception("Index write failed, leaving %s pending", message_id)
            return None
        except Exception:
            logger.exception("Dispatch failed for %s", message_id)
            return None

        logger.debug("Dispatched %s for %s (%s)", message_id, event.path, result.state.value)
        return message_id


async def main() -> None:
    """Main entry point for the indexing worker.

    Sets up all dependencies (Redis, PostgreSQL, Elasticsearch, handlers)
    and runs the worker until stopped.
    """
    setup_logging()
    config = get_config()

    logger.info(f"Connecting to Redis at {config.redis_url}")
    redis_client = redis.from_url(config.redis_url)

    publisher = RedisChangeEventPublisher(redis_client, config.change_events_stream)
    await publisher.ensure_consumer_group(config.change_events_group)

    consumer = RedisChangeEventConsumer(
        redis_client,
        stream_name=config.change_events_stream,
        group_name=config.change_events_group,
        consumer_name=f"{config.change_events_consumer_prefix}-{socket.gethostname()}-{os.getpid()}",
    )

    logger.info(f"Connecting to PostgreSQL at {config.postgres_host}:{config.postgres_port}")
    content_store = PostgresContentStore.from_config(config)

    registry = get_registry()
    handlers = build_default_handlers(
        HtmlTextExtractor(config.extraction_encoding),
        content_child=config.content_child_name,
    )
    start_handlers(registry, handlers)

    search_index = ElasticsearchSearchIndex.from_config(config)
    search_index.ensure_index()
    dispatcher = IndexingDispatcher(registry=registry, index=search_index)

    worker = IndexingWorker(
        consumer=consumer,
        dispatcher=dispatcher,
        session_factory=lambda: SimpleRepositorySession(content_store),
        batch_size=config.change_events_batch_size,
        block_ms=config.change_events_block_ms,
        reclaim_idle_ms=config.change_events_reclaim_idle_ms,
    )

    def handle_signal(sig: int, _frame: FrameType | None) -> None:
        logger.info("Received signal %s", sig)
        worker.signal_stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        await worker.run()
    finally:
        logger.info("Cleaning up resources")
        stop_handlers(registry, handlers)
        search_index.close()
        content_store.close()
        await redis_client.aclose()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
