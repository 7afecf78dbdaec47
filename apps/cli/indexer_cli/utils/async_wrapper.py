"""Run async command bodies from the synchronous Typer interface."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

T = TypeVar("T")


def async_command(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Wrap an async Typer command so it runs in a fresh event loop.

    Usage:
        @app.command()
        @async_command
        async def publish(path: str) -> None:
            await publisher.publish(...)
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        return asyncio.run(func(*args, **kwargs))

    return wrapper


__all__ = ["async_command"]
