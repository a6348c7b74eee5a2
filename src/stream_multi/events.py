"""Generation events consumed by the segment pipeline.

Events are the incremental output of a single language-model call. They are
immutable (frozen=True); the same event instance is handed to every branch
of a teed stream.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from stream_multi.errors import StreamEventError


class EventType(str, Enum):
    """Event type enumeration."""

    TEXT_DELTA = "text-delta"
    TOOL_CALL_DELTA = "tool-call-delta"
    TOOL_CALL = "tool-call"
    ERROR = "error"
    FINISH = "finish"


class BaseEvent(BaseModel):
    """Base for all generation events."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def event_type(self) -> EventType:
        return EventType(self.type)


class TextDelta(BaseEvent):
    """Streaming text fragment."""

    type: Literal["text-delta"] = "text-delta"
    text: str


class ToolCallDelta(BaseEvent):
    """Fragment of a tool call's arguments. Not actionable until complete."""

    type: Literal["tool-call-delta"] = "tool-call-delta"
    id: str
    name: str | None = None
    args_delta: str = ""


class ToolCall(BaseEvent):
    """A complete tool invocation requested by the model."""

    type: Literal["tool-call"] = "tool-call"
    id: str
    name: str
    args: Any = Field(default_factory=dict)


class ErrorEvent(BaseEvent):
    """The model stream failed. Terminal."""

    type: Literal["error"] = "error"
    error: BaseException


class Finish(BaseEvent):
    """The model stream completed. Terminal."""

    type: Literal["finish"] = "finish"
    finish_reason: str | None = None


Event = Annotated[
    TextDelta | ToolCallDelta | ToolCall | ErrorEvent | Finish,
    Field(discriminator="type"),
]

TERMINAL_EVENTS = frozenset({EventType.ERROR, EventType.FINISH})

_event_adapter: TypeAdapter[Event] = TypeAdapter(Event)


def parse_event(data: dict[str, Any]) -> Event:
    """Build an event from its JSON form.

    Error events are written as ``{"type": "error", "message": "..."}`` and
    are rebuilt around a StreamEventError.

    Raises:
        pydantic.ValidationError: If the payload matches no event type.
    """
    if data.get("type") == EventType.ERROR.value and "error" not in data:
        message = data.get("message") or "Stream error"
        return ErrorEvent(error=StreamEventError(message))
    return _event_adapter.validate_python(data)
