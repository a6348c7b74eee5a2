"""Protocols for the collaborators of the segment pipeline.

Implementations live in stream_multi.sinks and stream_multi.drivers.
"""

from collections.abc import AsyncIterator, Callable
from typing import Any, Protocol, runtime_checkable

from stream_multi.events import Event

# A renderer may return a plain value, an awaitable, a generator or an
# async generator. Dispatch happens on the returned value at runtime.
Renderer = Callable[..., Any]


@runtime_checkable
class DisplaySink(Protocol):
    """Incremental display target for a whole generation.

    ``done`` must be called exactly once, otherwise consumers wait forever.
    """

    @property
    def value(self) -> list[Any]: ...

    def update(self, node: Any) -> "DisplaySink":
        """Replace the last node."""
        ...

    def append(self, node: Any) -> "DisplaySink":
        """Add a node after the existing ones."""
        ...

    def error(self, cause: BaseException) -> "DisplaySink":
        """Seal the sink in an error state."""
        ...

    def done(self, *node: Any) -> "DisplaySink":
        """Seal the sink, optionally replacing the last node first."""
        ...


@runtime_checkable
class TextSink(Protocol):
    """Per-segment incremental text value."""

    @property
    def value(self) -> str: ...

    @property
    def closed(self) -> bool: ...

    def append(self, delta: str) -> "TextSink":
        """Append a text delta."""
        ...

    def done(self) -> "TextSink":
        """Seal the value."""
        ...


class LLMDriver(Protocol):
    """Protocol for model providers that stream generation events."""

    def stream_events(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[Event]:
        """Stream the events of one generation.

        Args:
            messages: Conversation history in OpenAI format.
            model: Model identifier (e.g., "gpt-4o", "claude-3-opus").
            tools: Tool definitions in OpenAI format.
            temperature: Sampling temperature.

        Yields:
            Events ending with Finish, or with ErrorEvent on failure.
        """
        ...
