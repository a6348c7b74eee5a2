"""Scripted driver for tests and replays.

Yields a fixed event list without network access.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from typing import Any

from stream_multi.events import Event


class ScriptedDriver:
    """Driver that replays a fixed list of events.

    Records every call so tests can assert on the request.
    """

    def __init__(
        self,
        events: Iterable[Event],
        delay: float = 0.0,
        fail_with: Exception | None = None,
    ) -> None:
        """Initialize with the events to replay.

        Args:
            events: Events yielded for every call, in order.
            delay: Seconds to sleep before each event.
            fail_with: Raised on the first read instead of yielding events.
        """
        self.events = list(events)
        self.delay = delay
        self.fail_with = fail_with
        self.calls: list[dict[str, Any]] = []

    async def stream_events(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[Event]:
        self.calls.append({
            "messages": messages,
            "model": model,
            "tools": tools,
            "temperature": temperature,
        })
        if self.fail_with is not None:
            raise self.fail_with
        for event in self.events:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield event
