"""Segment completion notifier."""

from collections.abc import Callable
from typing import Any

from stream_multi.segments import TextSegment, ToolCallSegment

SegmentObserver = Callable[[TextSegment | ToolCallSegment], Any]


class SegmentNotifier:
    """Calls the user's observer once per closed segment, in closing order.

    Observer exceptions propagate to the caller. The return value is ignored.
    """

    def __init__(self, on_segment: SegmentObserver | None = None) -> None:
        self._on_segment = on_segment
        self.count = 0

    def notify(self, segment: TextSegment | ToolCallSegment) -> None:
        if not segment.closed:
            raise ValueError(f"Cannot notify an open {segment.kind} segment")
        self.count += 1
        if self._on_segment is not None:
            self._on_segment(segment)
