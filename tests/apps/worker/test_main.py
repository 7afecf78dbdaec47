"""Tests for the indexing worker.

Tests the worker that reads change events from Redis Streams and dispatches
them through the indexing pipeline.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from packages.core.errors import IndexWriteError
from packages.core.events import ChangeOperation, ContentChangedEvent
from packages.core.use_cases.dispatch_event import DispatchResult, DispatchState


def _event(path: str) -> ContentChangedEvent:
    return ContentChangedEvent(path=path, resource_type="nt:file", operation=ChangeOperation.UPDATED)


def _result(event: ContentChangedEvent) -> DispatchResult:
    return DispatchResult(path=event.path, resource_type=event.resource_type, state=DispatchState.DONE)


@pytest.fixture
def mock_consumer() -> AsyncMock:
    """Mock change event consumer."""
    consumer = AsyncMock()
    consumer.read.return_value = ([], [])
    consumer.reclaim.return_value = ([], [])
    return consumer


@pytest.fixture
def mock_dispatcher() -> Mock:
    """Mock dispatcher echoing a DONE result."""
    dispatcher = Mock()
    dispatcher.dispatch.side_effect = lambda session, event: _result(event)
    return dispatcher


def _worker(consumer, dispatcher, **kwargs):
    from apps.worker.main import IndexingWorker

    return IndexingWorker(consumer=consumer, dispatcher=dispatcher, session_factory=Mock, **kwargs)


@pytest.mark.asyncio
async def test_worker_reads_with_batch_settings(mock_consumer, mock_dispatcher) -> None:
    """Test worker polls the consumer with its batch size and block timeout."""
    worker = _worker(mock_consumer, mock_dispatcher, batch_size=7, block_ms=250)

    assert await worker.poll_once() == 0

    mock_consumer.reclaim.assert_awaited_once_with(count=7, min_idle_ms=60000)
    mock_consumer.read.assert_awaited_once_with(count=7, block_ms=250)
    mock_dispatcher.dispatch.assert_not_called()


@pytest.mark.asyncio
async def test_worker_dispatches_and_acks(mock_consumer, mock_dispatcher) -> None:
    """Test every dispatched event is acknowledged."""
    mock_consumer.read.return_value = ([("1-0", _event("/a")), ("2-0", _event("/b"))], [])
    worker = _worker(mock_consumer, mock_dispatcher)

    assert await worker.poll_once() == 2

    dispatched = sorted(call.args[1].path for call in mock_dispatcher.dispatch.call_args_list)
    assert dispatched == ["/a", "/b"]
    mock_consumer.ack.assert_awaited_once_with(["1-0", "2-0"])


@pytest.mark.asyncio
async def test_worker_leaves_index_failures_pending(mock_consumer, mock_dispatcher) -> None:
    """Test events whose index writes failed are not acknowledged."""
    mock_consumer.read.return_value = ([("1-0", _event("/a")), ("2-0", _event("/b"))], [])

    def dispatch(session, event):
        if event.path == "/a":
            raise IndexWriteError("search index unavailable")
        return _result(event)

    mock_dispatcher.dispatch.side_effect = dispatch
    worker = _worker(mock_consumer, mock_dispatcher)

    assert await worker.poll_once() == 1

    mock_consumer.ack.assert_awaited_once_with(["2-0"])


@pytest.mark.asyncio
async def test_worker_acks_malformed_messages(mock_consumer, mock_dispatcher) -> None:
    """Test malformed messages are acknowledged so they are not redelivered."""
    mock_consumer.read.return_value = ([], ["9-0"])
    worker = _worker(mock_consumer, mock_dispatcher)

    assert await worker.poll_once() == 0

    mock_consumer.ack.assert_awaited_once_with(["9-0"])


@pytest.mark.asyncio
async def test_worker_handles_read_error(mock_consumer, mock_dispatcher) -> None:
    """Test worker survives consumer failures."""
    mock_consumer.read.side_effect = ConnectionError("redis down")
    worker = _worker(mock_consumer, mock_dispatcher)

    assert await worker.poll_once() == 0


@pytest.mark.asyncio
async def test_worker_uses_fresh_session_per_event(mock_consumer, mock_dispatcher) -> None:
    from apps.worker.main import IndexingWorker

    mock_consumer.read.return_value = ([("1-0", _event("/a")), ("2-0", _event("/b"))], [])
    session_factory = Mock(side_effect=lambda: object())
    worker = IndexingWorker(mock_consumer, mock_dispatcher, session_factory)

    await worker.poll_once()

    assert session_factory.call_count == 2


@pytest.mark.asyncio
async def test_worker_stops_on_signal(mock_consumer, mock_dispatcher) -> None:
    """Test run() exits once signal_stop() is called."""
    worker = _worker(mock_consumer, mock_dispatcher)

    async def read(**kwargs):
        worker.signal_stop()
        return [], []

    mock_consumer.read.side_effect = read

    await worker.run()

    assert worker.should_stop()
    mock_consumer.read.assert_awaited_once()


@pytest.mark.asyncio
async def test_worker_tops_up_reclaimed_events_without_blocking(mock_consumer, mock_dispatcher) -> None:
    """Test reclaimed events fill the batch first and new messages are read without blocking."""
    mock_consumer.reclaim.return_value = ([("1-0", _event("/a"))], ["0-5"])
    mock_consumer.read.return_value = ([("3-0", _event("/c"))], [])
    worker = _worker(mock_consumer, mock_dispatcher, batch_size=4, block_ms=250, reclaim_idle_ms=1000)

    assert await worker.poll_once() == 2

    mock_consumer.reclaim.assert_awaited_once_with(count=4, min_idle_ms=1000)
    mock_consumer.read.assert_awaited_once_with(count=3, block_ms=None)
    assert [call.args[0] for call in mock_consumer.ack.await_args_list] == [["0-5"], ["1-0", "3-0"]]


@pytest.mark.asyncio
async def test_worker_skips_read_when_batch_is_reclaimed(mock_consumer, mock_dispatcher) -> None:
    mock_consumer.reclaim.return_value = ([("1-0", _event("/a")), ("2-0", _event("/b"))], [])
    worker = _worker(mock_consumer, mock_dispatcher, batch_size=2)

    assert await worker.poll_once() == 2

    mock_consumer.read.assert_not_awaited()


class PendingStream:
    """Change event source keeping delivered but unacknowledged messages pending."""

    def __init__(self, messages: list[tuple[str, ContentChangedEvent]]) -> None:
        self.new = list(messages)
        self.pending: dict[str, ContentChangedEvent] = {}
        self.acked: list[str] = []

    async def read(self, *, count: int = 1, block_ms: int | None = 5000):
        delivered, self.new = self.new[:count], self.new[count:]
        self.pending.update(delivered)
        return delivered, []

    async def reclaim(self, *, count: int = 1, min_idle_ms: int = 60000):
        return list(self.pending.items())[:count], []

    async def ack(self, message_ids: list[str]) -> None:
        for message_id in message_ids:
            self.pending.pop(message_id, None)
            self.acked.append(message_id)


@pytest.mark.asyncio
async def test_failed_event_is_redelivered_on_next_poll(mock_dispatcher) -> None:
    """Test an event whose index write failed is dispatched again by the following poll."""
    stream = PendingStream([("1-0", _event("/a"))])
    event = stream.new[0][1]
    mock_dispatcher.dispatch.side_effect = [IndexWriteError("search index unavailable"), _result(event)]
    worker = _worker(stream, mock_dispatcher, reclaim_idle_ms=0)

    assert await worker.poll_once() == 0
    assert "1-0" in stream.pending

    assert await worker.poll_once() == 1

    assert mock_dispatcher.dispatch.call_count == 2
    assert [call.args[1].path for call in mock_dispatcher.dispatch.call_args_list] == ["/a", "/a"]
    assert stream.acked == ["1-0"]
    assert stream.pending == {}
