"""Default display nodes for text and tool segments.

Nodes are plain value objects placed in the display sink. They hold live
sinks, so a consumer can keep following a segment after it was mounted.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from stream_multi.sinks import StreamableUI, StreamableValue


@dataclass
class Message:
    """A text segment. ``content`` grows until the segment closes."""

    content: str | StreamableValue

    @property
    def text(self) -> str:
        if isinstance(self.content, StreamableValue):
            return self.content.value
        return self.content


@dataclass
class ToolMessage:
    """Container for the output of one tool renderer."""

    children: Any

    @property
    def current(self) -> Any:
        """The renderer's latest node, or None before its first update."""
        if isinstance(self.children, StreamableUI):
            nodes = self.children.value
            return nodes[-1] if nodes else None
        return self.children


def message_component(content: StreamableValue) -> Message:
    return Message(content=content)


def tool_component(children: StreamableUI) -> ToolMessage:
    return ToolMessage(children=children)


async def read_streamable_text(content: str | StreamableValue) -> AsyncIterator[str]:
    """Yield the accumulated text each time it changes.

    Works for plain strings too, so the same consumer handles messages that
    are still streaming and messages that are already complete.
    """
    if isinstance(content, str):
        yield content
        return
    async for text in content.updates():
        yield text
