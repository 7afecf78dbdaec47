"""Core use cases - Application service orchestration.

Use cases orchestrate workflows across adapters without containing framework-specific code.
"""

from __future__ import annotations

from packages.core.use_cases.dispatch_event import (
    DispatchResult,
    DispatchState,
    HandlerSource,
    IndexingDispatcher,
)

__all__ = [
    "DispatchResult",
    "DispatchState",
    "HandlerSource",
    "IndexingDispatcher",
]
