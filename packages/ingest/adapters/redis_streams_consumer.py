"""Redis Streams consumer for content change events."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Awaitable, Callable, cast

from redis.asyncio import Redis

from packages.core.events import ContentChangedEvent

logger = logging.getLogger(__name__)

StreamBatch = tuple[list[tuple[str, ContentChangedEvent]], list[str]]


def _decode(value: Any) -> Any:
    return value.decode() if isinstance(value, bytes) else value


class RedisChangeEventConsumer:
    """Consume content change events from Redis Streams.

    New messages are read with ``XREADGROUP``. Messages that were delivered
    but never acknowledged (for example because their index write failed) are
    taken back with ``XAUTOCLAIM`` once they have been idle long enough.
    """

    def __init__(
        self,
        redis_client: Redis[Any],
        *,
        stream_name: str,
        group_name: str,
        consumer_name: str,
    ) -> None:
        self.redis_client = redis_client
        self.stream_name = stream_name
        self.group_name = group_name
        self.consumer_name = consumer_name

    async def read(
        self,
        *,
        count: int = 1,
        block_ms: int | None = 5000,
    ) -> StreamBatch:
        """Read new events from the stream.

        Returns:
            A pair of (message_id, event) tuples and the ids of malformed
            messages, which callers should acknowledge so they are not redelivered.
        """

        response = await self.redis_client.xreadgroup(
            groupname=self.group_name,
            consumername=self.consumer_name,
            streams={self.stream_name: ">"},
            count=count,
            block=block_ms,
        )

        messages: list[tuple[Any, Any]] = []
        for stream_name, stream_messages in response or []:
            if _decode(stream_name) == self.stream_name:
                messages.extend(stream_messages)
        return self._parse(messages)

    async def reclaim(self, *, count: int = 1, min_idle_ms: int = 60000) -> StreamBatch:
        """Claim pending messages idle for at least ``min_idle_ms``.

        Covers messages left un-acked by this consumer as well as by
        consumers that died; they are returned in the same shape as ``read``.
        """

        response = await self.redis_client.xautoclaim(
            name=self.stream_name,
            groupname=self.group_name,
            consumername=self.consumer_name,
            min_idle_time=min_idle_ms,
            start_id="0-0",
            count=count,
        )

        # [next_start_id, [(id, fields), ...], deleted_ids]; Redis < 7 omits the last item.
        messages = list(response[1]) if response and len(response) > 1 else []
        events, malformed = self._parse(messages)
        if len(response or ()) > 2:
            malformed.extend(_decode(message_id) for message_id in response[2])
        if events:
            logger.info("Reclaimed pending change events", extra={"count": len(events)})
        return events, malformed

    async def ack(self, message_ids: Iterable[str]) -> None:
        """Acknowledge processed messages."""

        ids = list(message_ids)
        if not ids:
            return

        xack = cast(
            Callable[..., Awaitable[int]],
            getattr(self.redis_client, "xack"),
        )
        await xack(self.stream_name, self.group_name, *ids)

    @staticmethod
    def _parse(messages: Iterable[tuple[Any, Any]]) -> StreamBatch:
        events: list[tuple[str, ContentChangedEvent]] = []
        malformed: list[str] = []

        for raw_id, payload in messages:
            message_id = _decode(raw_id)
            try:
                # Entries trimmed from the stream come back without fields.
                if not payload:
                    raise ValueError("message has no fields")
                data = {_decode(k): _decode(v) for k, v in payload.items()}
                event = ContentChangedEvent.from_payload(data)
            except ValueError as e:
                # UnicodeDecodeError is a ValueError as well.
                logger.warning(
                    "Skipping malformed change event",
                    extra={"message_id": message_id, "error": str(e)},
                )
                malformed.append(message_id)
                continue
            events.append((message_id, event))

        return events, malformed


__all__ = ["RedisChangeEventConsumer", "StreamBatch"]
