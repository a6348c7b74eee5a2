"""Streamable sinks that make the pipeline's output observable.

StreamableUI holds the display tree of a generation: a list of nodes where
only the last node can be replaced. StreamableValue is a text value that
grows by appended deltas. Both can be followed with ``async for`` and stop
accepting writes once sealed with ``done`` or ``error``.

Usage:
    ui = StreamableUI(initial="Loading...")
    ui.update(message)   # replaces "Loading..."
    ui.append(panel)     # message is now fixed
    ui.done()

    async for snapshot in ui.updates():
        ...
"""

import asyncio
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any, Generic, TypeVar

from stream_multi.errors import SinkClosedError

T = TypeVar("T")

_SEALED = object()


class SinkState(str, Enum):
    """Lifecycle state of a sink."""

    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


class _Streamable(Generic[T]):
    """Shared state machine and subscription fan-out."""

    def __init__(self) -> None:
        self._state = SinkState.PENDING
        self._error: BaseException | None = None
        self._subscribers: list[asyncio.Queue[Any]] = []

    @property
    def state(self) -> SinkState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is not SinkState.PENDING

    @property
    def error_cause(self) -> BaseException | None:
        return self._error

    def _snapshot(self) -> T:
        raise NotImplementedError

    def _ensure_open(self) -> None:
        if self.closed:
            raise SinkClosedError(self._state.value)

    def _publish(self) -> None:
        snapshot = self._snapshot()
        for queue in self._subscribers:
            queue.put_nowait(snapshot)

    def _seal(self, state: SinkState, cause: BaseException | None = None) -> None:
        self._ensure_open()
        self._state = state
        self._error = cause
        for queue in self._subscribers:
            queue.put_nowait(_SEALED)
        self._subscribers.clear()

    async def updates(self) -> AsyncIterator[T]:
        """Yield the current snapshot, then every change until sealed.

        Raises:
            BaseException: The cause passed to ``error()``, after the last
                snapshot.
        """
        queue: asyncio.Queue[Any] = asyncio.Queue()
        queue.put_nowait(self._snapshot())
        if self.closed:
            queue.put_nowait(_SEALED)
        else:
            self._subscribers.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is _SEALED:
                    break
                yield item
        finally:
            if queue in self._subscribers:
                self._subscribers.remove(queue)
        if self._error is not None:
            raise self._error

    async def wait(self) -> T:
        """Wait until the sink is sealed and return its final value."""
        last = self._snapshot()
        async for snapshot in self.updates():
            last = snapshot
        return last


class StreamableValue(_Streamable[str]):
    """Text value built from appended deltas."""

    def __init__(self, initial: str = "") -> None:
        super().__init__()
        self._value = initial

    def __repr__(self) -> str:
        return f"StreamableValue({self._value!r}, state={self._state.value})"

    @property
    def value(self) -> str:
        return self._value

    def _snapshot(self) -> str:
        return self._value

    def append(self, delta: str) -> "StreamableValue":
        self._ensure_open()
        self._value += delta
        self._publish()
        return self

    def update(self, value: str) -> "StreamableValue":
        self._ensure_open()
        self._value = value
        self._publish()
        return self

    def error(self, cause: BaseException) -> "StreamableValue":
        self._seal(SinkState.ERROR, cause)
        return self

    def done(self) -> "StreamableValue":
        self._seal(SinkState.DONE)
        return self


class StreamableUI(_Streamable[list[Any]]):
    """Display tree of nodes. Only the last node can be replaced."""

    def __init__(self, initial: Any = None) -> None:
        super().__init__()
        self._nodes: list[Any] = [] if initial is None else [initial]

    def __repr__(self) -> str:
        return f"StreamableUI({self._nodes!r}, state={self._state.value})"

    @property
    def value(self) -> list[Any]:
        return list(self._nodes)

    def _snapshot(self) -> list[Any]:
        return list(self._nodes)

    def update(self, node: Any) -> "StreamableUI":
        self._ensure_open()
        if self._nodes:
            self._nodes[-1] = node
        else:
            self._nodes.append(node)
        self._publish()
        return self

    def append(self, node: Any) -> "StreamableUI":
        self._ensure_open()
        self._nodes.append(node)
        self._publish()
        return self

    def error(self, cause: BaseException) -> "StreamableUI":
        self._seal(SinkState.ERROR, cause)
        return self

    def done(self, *node: Any) -> "StreamableUI":
        if node:
            self.update(node[0])
        self._seal(SinkState.DONE)
        return self
