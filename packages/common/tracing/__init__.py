"""Per-event correlation IDs.

Each change event is dispatched inside its own TracingContext so that the log
lines of the dispatcher, the handlers and the index adapters share one id.
The id lives in a ContextVar, so it follows ``asyncio.to_thread`` calls made
by the worker loop.
"""

import uuid
from contextvars import ContextVar, Token
from types import TracebackType

_correlation_id: ContextVar[str | None] = ContextVar("indexer_correlation_id", default=None)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (or a fresh one) to the current context and return it."""
    value = correlation_id or generate_correlation_id()
    _correlation_id.set(value)
    return value


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class TracingContext:
    """Bind a correlation id for the duration of a ``with`` block.

    The previous binding is restored on exit, so contexts nest.

    Example:
        >>> with TracingContext() as correlation_id:
        ...     dispatcher.dispatch(session, event)
    """

    def __init__(self, correlation_id: str | None = None) -> None:
        self.correlation_id = correlation_id
        self._token: Token[str | None] | None = None

    def __enter__(self) -> str:
        self.correlation_id = self.correlation_id or generate_correlation_id()
        self._token = _correlation_id.set(self.correlation_id)
        return self.correlation_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None


__all__ = [
    "TracingContext",
    "clear_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]
