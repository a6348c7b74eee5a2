"""Split one generation into segments and render them in order.

``stream_segments`` works on any event stream; ``stream_multi`` first calls a
model driver. Both return immediately: rendering continues in a background
task while the caller reads ``result.ui`` or its own copy of the events.

Example:
    result = await stream_multi(
        [{"role": "user", "content": "What's the weather in Paris?"}],
        tools={"get_weather": get_weather},
        initial="Thinking...",
        on_segment=lambda segment: history.append(segment),
    )
    async for nodes in result.ui.updates():
        ...
"""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any

from stream_multi.config import StreamMultiSettings, get_settings
from stream_multi.demux import SegmentDemultiplexer
from stream_multi.errors import ConfigurationError
from stream_multi.events import Event
from stream_multi.notifier import SegmentNotifier, SegmentObserver
from stream_multi.protocols import LLMDriver
from stream_multi.scheduler import RenderScheduler
from stream_multi.segments import RenderTask, TextSegment, ToolCallSegment
from stream_multi.sinks import StreamableUI, StreamableValue
from stream_multi.tee import tee_events
from stream_multi.tools import tool_schemas

logger = logging.getLogger(__name__)


@dataclass
class StreamMultiResult:
    """Handle on a generation that is being segmented and rendered.

    ``segments`` and ``tasks`` are live lists that grow while rendering runs.
    """

    full_stream: AsyncIterator[Event]
    ui: StreamableUI
    segments: list[TextSegment | ToolCallSegment] = field(default_factory=list)
    tasks: list[RenderTask] = field(default_factory=list)
    model: str | None = None
    rendering: asyncio.Task[None] | None = None
    demux: SegmentDemultiplexer | None = field(default=None, repr=False)

    @property
    def text(self) -> str:
        """Text of all closed text segments so far."""
        return "".join(s.text for s in self.segments if isinstance(s, TextSegment))

    @property
    def tool_calls(self) -> list[ToolCallSegment]:
        """Tool calls of the generation so far, in order."""
        return [s for s in self.segments if isinstance(s, ToolCallSegment)]

    @property
    def finish_reason(self) -> str | None:
        """Reason reported by the model's ``finish`` event, once it arrived."""
        return self.demux.finish_reason if self.demux is not None else None

    async def wait(self) -> list[Any]:
        """Wait for rendering to finish and return the final display nodes.

        Raises:
            BaseException: The failure the display sink was sealed with.
        """
        if self.rendering is not None:
            await self.rendering
        return await self.ui.wait()


def _first_cause(error: BaseException) -> BaseException:
    """Unwrap task-group exception groups down to the first real failure."""
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error


class SegmentPipeline:
    """Wires the demultiplexer to the render scheduler and the notifier."""

    def __init__(
        self,
        events: AsyncIterator[Event],
        ui: StreamableUI,
        scheduler: RenderScheduler,
        notifier: SegmentNotifier,
    ) -> None:
        self._events = events
        self._ui = ui
        self._scheduler = scheduler
        self._notifier = notifier
        self.demux = SegmentDemultiplexer(on_close=self._on_close, on_open=scheduler.mount_text)
        self.closed: list[TextSegment | ToolCallSegment] = []

    def _on_close(self, segment: TextSegment | ToolCallSegment) -> None:
        self.closed.append(segment)
        self._scheduler.schedule(segment)
        self._notifier.notify(segment)

    async def _consume(self) -> None:
        async with self._scheduler:
            async for event in self._events:
                if not self.demux.feed(event):
                    break
            if not self.demux.halted:
                self.demux.close_open()

    async def run(self) -> None:
        """Consume the stream and seal the display sink.

        Never raises: every failure ends up in ``ui.error``.
        """
        try:
            await self._consume()
        except Exception as e:
            cause = _first_cause(e)
            logger.warning("Generation failed after %d segments: %r", len(self.closed), cause)
            self._ui.error(cause)
        else:
            logger.info("Generation finished with %d segments", len(self.closed))
            self._ui.done()
        finally:
            aclose = getattr(self._events, "aclose", None)
            if aclose is not None:
                await aclose()


def stream_segments(
    events: AsyncIterable[Event],
    *,
    tools: dict[str, Any] | None = None,
    initial: Any = None,
    on_segment: SegmentObserver | None = None,
    text_component: Callable[[StreamableValue], Any] | None = None,
    tool_component: Callable[[StreamableUI], Any] | None = None,
    settings: StreamMultiSettings | None = None,
    model: str | None = None,
) -> StreamMultiResult:
    """Segment and render an event stream in the background.

    Must be called from a running event loop.

    Args:
        events: Generation events, read once.
        tools: Tool name to Tool or renderer callable.
        initial: Placeholder shown until the first segment appears.
        on_segment: Called once per closed segment, in order.
        text_component: Builds the display node of a text segment.
        tool_component: Builds the display node wrapping a tool's sink.
        settings: Overrides the environment settings.
        model: Model name reported on the result.

    Returns:
        A result whose ``full_stream`` yields the same events as ``events``.
    """
    settings = settings or get_settings()
    caller_view, pipeline_view = tee_events(events)
    ui = StreamableUI(initial)
    scheduler = RenderScheduler(
        ui,
        tools=tools,
        text_component=text_component,
        tool_component=tool_component,
        not_found=settings.tool_not_found,
    )
    pipeline = SegmentPipeline(pipeline_view, ui, scheduler, SegmentNotifier(on_segment))
    rendering = asyncio.get_running_loop().create_task(pipeline.run())
    return StreamMultiResult(
        full_stream=caller_view,
        ui=ui,
        segments=pipeline.closed,
        tasks=scheduler.tasks,
        model=model,
        rendering=rendering,
        demux=pipeline.demux,
    )


async def stream_multi(
    messages: list[dict[str, Any]],
    *,
    model: str | None = None,
    tools: dict[str, Any] | None = None,
    initial: Any = None,
    on_segment: SegmentObserver | None = None,
    text_component: Callable[[StreamableValue], Any] | None = None,
    tool_component: Callable[[StreamableUI], Any] | None = None,
    temperature: float | None = None,
    driver: LLMDriver | None = None,
    settings: StreamMultiSettings | None = None,
) -> StreamMultiResult:
    """Call a model and render its text and tool calls as ordered segments.

    Whenever the model switches from text to a tool call a new segment
    starts. Text segments are shown with ``text_component`` while they
    stream; each tool call is rendered by the ``generate`` function of the
    matching tool.

    Args:
        messages: Conversation history in OpenAI format.
        model: Model identifier; defaults to ``settings.model``.
        tools: Tools offered to the model, keyed by name.
        initial: Placeholder shown until the first segment appears.
        on_segment: Called once per closed segment, in order.
        text_component: Builds the display node of a text segment.
        tool_component: Builds the display node wrapping a tool's sink.
        temperature: Sampling temperature; defaults to ``settings.temperature``.
        driver: Event source; defaults to a LiteLLMDriver.
        settings: Overrides the environment settings.
    """
    settings = settings or get_settings()
    model = model or settings.model
    if not model:
        raise ConfigurationError("No model configured; pass model= or set STREAM_MULTI_MODEL")
    if driver is None:
        from stream_multi.drivers.litellm import LiteLLMDriver

        driver = LiteLLMDriver(api_key=settings.api_key, api_base=settings.api_base)

    events = driver.stream_events(
        messages,
        model=model,
        tools=tool_schemas(tools),
        temperature=settings.temperature if temperature is None else temperature,
    )
    return stream_segments(
        events,
        tools=tools,
        initial=initial,
        on_segment=on_segment,
        text_component=text_component,
        tool_component=tool_component,
        settings=settings,
        model=model,
    )
