"""stream-multi - Ordered segment rendering for streaming model output.

Splits the event stream of one model call into text and tool-call segments
and renders them concurrently while sealing each in order.

Example:
    from stream_multi import stream_multi, tool

    @tool
    async def get_weather(city: str):
        '''Look up the current weather.'''
        yield f"Checking {city}..."
        yield f"{city}: 21C"

    result = await stream_multi(
        [{"role": "user", "content": "Weather in Paris?"}],
        tools={"get_weather": get_weather},
        initial="Thinking...",
    )
    nodes = await result.wait()
"""

from stream_multi.components import Message, ToolMessage, read_streamable_text
from stream_multi.config import StreamMultiSettings, get_settings
from stream_multi.errors import (
    ConfigurationError,
    LLMServiceError,
    SegmentClosedError,
    SinkClosedError,
    StreamEventError,
    StreamHaltedError,
    StreamMultiError,
)
from stream_multi.events import (
    ErrorEvent,
    Event,
    EventType,
    Finish,
    TextDelta,
    ToolCall,
    ToolCallDelta,
    parse_event,
)
from stream_multi.segments import (
    RenderStatus,
    RenderTask,
    Segment,
    TextSegment,
    ToolCallSegment,
)
from stream_multi.sinks import SinkState, StreamableUI, StreamableValue
from stream_multi.stream import StreamMultiResult, stream_multi, stream_segments
from stream_multi.tee import tee_events
from stream_multi.tools import Tool, tool, to_tool_schema

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "stream_multi",
    "stream_segments",
    "StreamMultiResult",
    # Events
    "Event",
    "EventType",
    "TextDelta",
    "ToolCallDelta",
    "ToolCall",
    "ErrorEvent",
    "Finish",
    "parse_event",
    # Segments
    "Segment",
    "TextSegment",
    "ToolCallSegment",
    "RenderTask",
    "RenderStatus",
    # Sinks and components
    "StreamableUI",
    "StreamableValue",
    "SinkState",
    "Message",
    "ToolMessage",
    "read_streamable_text",
    "tee_events",
    # Tools
    "Tool",
    "tool",
    "to_tool_schema",
    # Configuration
    "StreamMultiSettings",
    "get_settings",
    # Errors
    "StreamMultiError",
    "ConfigurationError",
    "LLMServiceError",
    "StreamEventError",
    "SinkClosedError",
    "SegmentClosedError",
    "StreamHaltedError",
]
