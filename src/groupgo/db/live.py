"""Live query results delivered as cancellable async iterators.

A LiveQuery is fed by its producer (a store listener, a polling task, or other
live queries) and consumed with ``async for``. Closing it, directly or by
leaving an ``async with`` block, releases the producer. A producer failure is
raised from the consumer's next iteration and ends the stream.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)

# Returned by a combine() reducer when an event should not produce output.
SKIP: Any = object()

_END = object()


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error


class LiveQuery(Generic[T]):
    def __init__(self, on_close: Callable[[], None] | None = None) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._on_close = on_close
        self._finished = False
        self._closed = False

    @classmethod
    def of(cls, value: T) -> "LiveQuery[T]":
        """A stream that yields a single value and then ends."""
        live: LiveQuery[T] = cls()
        live.push(value)
        live.finish()
        return live

    @property
    def closed(self) -> bool:
        return self._closed

    # Producer side

    def push(self, value: T) -> None:
        if not self._finished:
            self._queue.put_nowait(value)

    def fail(self, error: BaseException) -> None:
        if self._finished:
            return
        self._finished = True
        self._queue.put_nowait(_Failure(error))
        self._release()

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._queue.put_nowait(_END)
        self._release()

    def _release(self) -> None:
        callback, self._on_close = self._on_close, None
        if callback is not None:
            callback()

    # Consumer side

    def close(self) -> None:
        """Stop delivery and release the producer. Safe to call more than once."""
        self._closed = True
        self.finish()

    def __aiter__(self) -> "LiveQuery[T]":
        return self

    async def __anext__(self) -> T:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._closed = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._closed = True
            raise item.error
        return item

    async def __aenter__(self) -> "LiveQuery[T]":
        return self

    async def __aexit__(self, *args: object) -> None:
        self.close()

    def map(self, fn: Callable[[T], R]) -> "LiveQuery[R]":
        return combine([self], lambda _index, value: fn(value))


def combine(sources: Sequence[LiveQuery[Any]], reducer: Callable[[int, Any], Any]) -> LiveQuery[Any]:
    """Feed every event of every source through ``reducer(source_index, value)``.

    Whatever the reducer returns is pushed downstream unless it is SKIP. The
    combined stream fails as soon as any source fails, finishes once all
    sources have finished, and closing it closes every source.
    Must be called from a running event loop.
    """
    loop = asyncio.get_running_loop()
    tasks: list[asyncio.Task[None]] = []
    remaining = len(sources)

    def _close_sources() -> None:
        for task in tasks:
            task.cancel()
        for source in sources:
            source.close()

    combined: LiveQuery[Any] = LiveQuery(on_close=_close_sources)

    async def _pump(index: int, source: LiveQuery[Any]) -> None:
        nonlocal remaining
        try:
            async for value in source:
                out = reducer(index, value)
                if out is not SKIP:
                    combined.push(out)
        except Exception as e:
            logger.warning("Live query source %d failed: %s", index, e)
            combined.fail(e)
            return
        remaining -= 1
        if remaining == 0:
            combined.finish()

    tasks.extend(loop.create_task(_pump(i, source)) for i, source in enumerate(sources))
    return combined
