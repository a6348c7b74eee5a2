"""Segment models.

A segment is a contiguous unit of model output: one run of text, or one tool
invocation. Segments live for the duration of one generation.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from stream_multi.errors import SegmentClosedError
from stream_multi.sinks import StreamableValue


class TextSegment(BaseModel):
    """A run of text. Open until the next tool call or the end of the stream."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["text"] = "text"
    text: str = ""
    sink: StreamableValue = Field(default_factory=StreamableValue, repr=False)
    closed: bool = False

    @classmethod
    def open(cls, text: str) -> "TextSegment":
        """Start a segment seeded with its first delta."""
        return cls(text=text, sink=StreamableValue(text))

    def append(self, delta: str) -> None:
        if self.closed:
            raise SegmentClosedError(self.kind)
        self.text += delta
        self.sink.append(delta)

    def close(self) -> None:
        """Make the segment immutable and seal its sink."""
        if self.closed:
            raise SegmentClosedError(self.kind)
        self.closed = True
        self.sink.done()


class ToolCallSegment(BaseModel):
    """A single tool invocation. Created closed, never extended."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tool-call"] = "tool-call"
    id: str
    name: str
    args: Any = Field(default_factory=dict)

    @property
    def closed(self) -> bool:
        return True


Segment = Annotated[TextSegment | ToolCallSegment, Field(discriminator="kind")]


class RenderStatus(str, Enum):
    """Render task lifecycle."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class RenderTask(BaseModel):
    """Rendering state of one segment."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    segment: TextSegment | ToolCallSegment
    status: RenderStatus = RenderStatus.PENDING
