"""
Execution contexts for callback delivery.

Anything with `submit(fn, *args)` qualifies, including every
concurrent.futures.Executor. Submission is fire-and-forget; ordering between
submissions is whatever the context itself provides.
"""

import asyncio
from typing import Any, Callable, Protocol


class ExecutionContext(Protocol):
    """Accepts a unit of work and guarantees it runs."""

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> Any: ...


class LoopExecutionContext:
    """Runs submitted work on an asyncio event loop, FIFO, from any thread."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> asyncio.Handle:
        return self.loop.call_soon_threadsafe(fn, *args)
