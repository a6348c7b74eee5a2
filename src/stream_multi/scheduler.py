"""Ordered asynchronous rendering of segments.

Each closed segment gets a render task. Tasks run concurrently: a tool's
renderer starts as soon as its segment closes and pushes intermediate nodes
to its own sink right away. Only the final ``done`` of a task waits for the
previous task to settle, so sinks are sealed in segment order no matter how
long each renderer takes. A tool with no renderer gets the ``not_found``
node, which is sealed through the same chain: it settles after the previous
segment rather than immediately.

The scheduler owns an asyncio.TaskGroup. A renderer failure cancels every
other render task and the block running inside ``async with``.

Usage:
    async with RenderScheduler(ui, tools={"lookup": render_lookup}) as scheduler:
        scheduler.schedule(segment)
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Mapping
from typing import Any

from stream_multi import components
from stream_multi.protocols import DisplaySink, Renderer
from stream_multi.segments import RenderStatus, RenderTask, TextSegment, ToolCallSegment
from stream_multi.sinks import StreamableUI, StreamableValue

logger = logging.getLogger(__name__)

DEFAULT_NOT_FOUND = "Tool not found"


async def render_to_sink(
    value: Any,
    sink: DisplaySink,
    before_done: Callable[[], Awaitable[None]] | None = None,
) -> None:
    """Drive a renderer's return value into ``sink``.

    Awaitables are awaited and sealed with their result. Iterators and async
    iterators are consumed to exhaustion: each item becomes an ``update`` and
    the sink is sealed with the generator's return value, or with the last
    item when there is none. Any other value seals the sink directly.

    ``before_done`` is awaited right before the sink is sealed.
    """
    final: Any = None
    if inspect.isawaitable(value):
        logger.debug("Rendering awaitable")
        final = await value
    elif isinstance(value, AsyncIterator):
        logger.debug("Rendering async iterator")
        async for node in value:
            sink.update(node)
            final = node
    elif isinstance(value, Iterator):
        logger.debug("Rendering iterator")
        while True:
            try:
                node = next(value)
            except StopIteration as stop:
                if stop.value is not None:
                    final = stop.value
                break
            sink.update(node)
            final = node
    else:
        final = value

    if before_done is not None:
        await before_done()
    sink.done(final)


def invoke_renderer(renderer: Renderer, args: Any) -> Any:
    """Call a renderer with tool-call arguments.

    Mapping arguments become keyword arguments; anything else is passed as a
    single positional argument.
    """
    if isinstance(args, Mapping):
        return renderer(**args)
    return renderer(args)


async def _wait_settled(task: asyncio.Task[None] | None) -> None:
    if task is not None:
        await asyncio.wait({task})


class RenderScheduler:
    """Renders segments into a display sink with ordered completion."""

    def __init__(
        self,
        ui: DisplaySink,
        tools: Mapping[str, Any] | None = None,
        text_component: Callable[[StreamableValue], Any] | None = None,
        tool_component: Callable[[StreamableUI], Any] | None = None,
        not_found: Any = DEFAULT_NOT_FOUND,
    ) -> None:
        self._ui = ui
        self._tools = dict(tools or {})
        self._text_component = text_component or components.message_component
        self._tool_component = tool_component or components.tool_component
        self._not_found = not_found
        self._shown = False
        self._group: asyncio.TaskGroup | None = None
        # The task whose settlement gates the next task's final ``done``.
        self._tail: asyncio.Task[None] | None = None
        self.tasks: list[RenderTask] = []
        self.completed: list[RenderTask] = []

    async def __aenter__(self) -> "RenderScheduler":
        self._group = asyncio.TaskGroup()
        await self._group.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool | None:
        group = self._group
        assert group is not None
        try:
            return await group.__aexit__(exc_type, exc, tb)
        finally:
            self._group = None
            for task in self.tasks:
                if task.status in (RenderStatus.PENDING, RenderStatus.RUNNING):
                    task.status = RenderStatus.CANCELLED

    def show(self, node: Any) -> None:
        """Put a segment's node on the display.

        The first node replaces the placeholder; later nodes are appended.
        """
        if self._shown:
            self._ui.append(node)
        else:
            self._shown = True
            self._ui.update(node)

    def mount_text(self, segment: TextSegment) -> None:
        """Display a text segment as soon as it opens."""
        self.show(self._text_component(segment.sink))

    def renderer_for(self, name: str) -> Renderer | None:
        entry = self._tools.get(name)
        if entry is None:
            return None
        return getattr(entry, "generate", entry)

    def schedule(self, segment: TextSegment | ToolCallSegment) -> RenderTask:
        """Start rendering a closed segment.

        Raises:
            RuntimeError: If the scheduler has not been entered.
        """
        if self._group is None:
            raise RuntimeError("RenderScheduler must be entered before scheduling")

        task = RenderTask(index=len(self.tasks), segment=segment)
        self.tasks.append(task)
        previous = self._tail

        if isinstance(segment, ToolCallSegment):
            sink = StreamableUI()
            self.show(self._tool_component(sink))
            coro = self._render_tool(task, segment, sink, previous)
        else:
            coro = self._settle_text(task, previous)

        self._tail = self._group.create_task(coro)
        return task

    async def _render_tool(
        self,
        task: RenderTask,
        segment: ToolCallSegment,
        sink: StreamableUI,
        previous: asyncio.Task[None] | None,
    ) -> None:
        task.status = RenderStatus.RUNNING
        renderer = self.renderer_for(segment.name)
        try:
            if renderer is None:
                logger.warning("No renderer for tool '%s'", segment.name)
                value = self._not_found
            else:
                logger.debug("Rendering tool '%s' (segment %d)", segment.name, task.index)
                value = invoke_renderer(renderer, segment.args)
            await render_to_sink(value, sink, before_done=lambda: _wait_settled(previous))
        except Exception:
            task.status = RenderStatus.ERRORED
            logger.debug("Renderer for tool '%s' failed", segment.name, exc_info=True)
            raise
        self._settled(task)

    async def _settle_text(self, task: RenderTask, previous: asyncio.Task[None] | None) -> None:
        task.status = RenderStatus.RUNNING
        await _wait_settled(previous)
        self._settled(task)

    def _settled(self, task: RenderTask) -> None:
        task.status = RenderStatus.DONE
        self.completed.append(task)

