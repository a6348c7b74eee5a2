"""Event source duplication.

An async event stream can only be consumed once. EventTee fans one upstream
stream out to independent views: every view sees the same events in the same
order and ends with the same terminal item, and a slow or abandoned view never
holds back the others.

Usage:
    caller_view, pipeline_view = tee_events(driver.stream_events(...))
"""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_END = object()


class _Failure:
    def __init__(self, error: BaseException) -> None:
        self.error = error


class EventTee(Generic[T]):
    """Pull-based broadcast of one async iterable to ``n`` readers.

    A view that runs out of buffered items waits on the single in-flight
    upstream pull, starting it if needed. The pull runs in its own task and
    is shielded, so cancelling one reader never interrupts the upstream
    iterator the other views still depend on.
    """

    def __init__(self, source: AsyncIterable[T], n: int = 2) -> None:
        if n < 1:
            raise ValueError("n must be at least 1")
        self._source = source
        self._iterator: AsyncIterator[T] | None = None
        self._buffers: list[deque[Any] | None] = [deque() for _ in range(n)]
        self._pending: asyncio.Task[None] | None = None
        self._finished = False
        self.views = tuple(_TeeView(self, i) for i in range(n))

    async def _fetch(self) -> None:
        try:
            if self._iterator is None:
                self._iterator = aiter(self._source)
            item: Any = await anext(self._iterator)
        except StopAsyncIteration:
            item = _END
            self._finished = True
        except Exception as e:
            logger.debug("Upstream event stream failed: %r", e)
            item = _Failure(e)
            self._finished = True
        finally:
            self._pending = None
        for buffer in self._buffers:
            if buffer is not None:
                buffer.append(item)

    async def _pull(self) -> None:
        if self._finished:
            raise StopAsyncIteration
        if self._pending is None:
            self._pending = asyncio.get_running_loop().create_task(self._fetch())
        await asyncio.shield(self._pending)

    async def _next(self, index: int) -> T:
        buffer = self._buffers[index]
        if buffer is None:
            raise StopAsyncIteration
        while not buffer:
            if self._buffers[index] is None:
                raise StopAsyncIteration
            await self._pull()
        item = buffer[0]
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            # Terminal items stay buffered so repeated reads keep failing.
            raise item.error
        return buffer.popleft()

    async def _detach(self, index: int) -> None:
        self._buffers[index] = None
        if all(buffer is None for buffer in self._buffers):
            await self._close_source()

    async def _close_source(self) -> None:
        self._finished = True
        pending = self._pending
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.wait({pending})
        aclose = getattr(self._iterator, "aclose", None)
        if aclose is not None:
            await aclose()


class _TeeView(Generic[T]):
    """One independent read cursor over an EventTee."""

    def __init__(self, tee: EventTee[T], index: int) -> None:
        self._tee = tee
        self._index = index

    def __aiter__(self) -> "_TeeView[T]":
        return self

    async def __anext__(self) -> T:
        return await self._tee._next(self._index)

    async def aclose(self) -> None:
        """Stop reading. Upstream is closed when every view has stopped."""
        await self._tee._detach(self._index)


def tee_events(source: AsyncIterable[T], n: int = 2) -> tuple[AsyncIterator[T], ...]:
    """Split ``source`` into ``n`` independent views."""
    return EventTee(source, n).views
