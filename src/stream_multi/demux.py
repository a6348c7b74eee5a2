"""Segment demultiplexer.

Turns the flat event stream of a generation into segments. Text deltas
extend the open text segment; a tool call closes it and forms a segment of
its own; ``finish`` and ``error`` close whatever is still open and halt.

Closed segments are handed to ``on_close`` synchronously, in creation order,
before ``feed`` returns. Downstream ordering relies on that alone.
"""

import logging
from collections.abc import Callable

from stream_multi.errors import StreamHaltedError
from stream_multi.events import (
    ErrorEvent,
    Event,
    Finish,
    TextDelta,
    ToolCall,
    ToolCallDelta,
)
from stream_multi.segments import TextSegment, ToolCallSegment

logger = logging.getLogger(__name__)

OpenHandler = Callable[[TextSegment], None]
CloseHandler = Callable[[TextSegment | ToolCallSegment], None]


class SegmentDemultiplexer:
    """Boundary-detection state machine over generation events."""

    def __init__(
        self,
        on_close: CloseHandler,
        on_open: OpenHandler | None = None,
    ) -> None:
        self._on_close = on_close
        self._on_open = on_open
        self._open: TextSegment | None = None
        self._halted = False
        self.finish_reason: str | None = None
        self.segments: list[TextSegment | ToolCallSegment] = []

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def open_segment(self) -> TextSegment | None:
        return self._open

    def feed(self, event: Event) -> bool:
        """Process one event.

        Returns:
            False once a terminal event has been processed, True otherwise.

        Raises:
            StreamHaltedError: If called after a terminal event.
            BaseException: The cause carried by an ``error`` event, after the
                open segment has been closed.
        """
        if self._halted:
            raise StreamHaltedError(event.type)

        if isinstance(event, TextDelta):
            self._on_text(event.text)
        elif isinstance(event, ToolCall):
            self.close_open()
            segment = ToolCallSegment(id=event.id, name=event.name, args=event.args)
            self.segments.append(segment)
            self._close(segment)
        elif isinstance(event, ToolCallDelta):
            pass
        elif isinstance(event, ErrorEvent):
            self.close_open()
            self._halted = True
            raise event.error
        elif isinstance(event, Finish):
            self.close_open()
            self._halted = True
            self.finish_reason = event.finish_reason
            logger.debug(
                "Stream finished after %d segments (%s)", len(self.segments), event.finish_reason
            )
            return False
        return True

    def close_open(self) -> None:
        """Close the open text segment, if any."""
        segment = self._open
        if segment is None:
            return
        self._open = None
        segment.close()
        self._close(segment)

    def _on_text(self, delta: str) -> None:
        if self._open is not None:
            self._open.append(delta)
            return
        segment = TextSegment.open(delta)
        self._open = segment
        self.segments.append(segment)
        logger.debug("Opened text segment %d", len(self.segments) - 1)
        if self._on_open is not None:
            self._on_open(segment)

    def _close(self, segment: TextSegment | ToolCallSegment) -> None:
        logger.debug("Closed %s segment %d", segment.kind, len(self.segments) - 1)
        self._on_close(segment)
