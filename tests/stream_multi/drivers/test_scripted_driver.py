"""Tests for the scripted driver."""

import pytest

from stream_multi.drivers import LiteLLMDriver, ScriptedDriver
from stream_multi.drivers.litellm import LiteLLMDriver as DirectLiteLLMDriver
from stream_multi.events import Finish, TextDelta


@pytest.mark.asyncio
async def test_replays_events() -> None:
    events = [TextDelta(text="a"), Finish()]
    driver = ScriptedDriver(events)
    seen = [e async for e in driver.stream_events([], model="m", temperature=0.3)]
    assert seen == events
    assert driver.calls == [{"messages": [], "model": "m", "tools": None, "temperature": 0.3}]


@pytest.mark.asyncio
async def test_fail_with() -> None:
    driver = ScriptedDriver([Finish()], fail_with=ConnectionError("down"))
    with pytest.raises(ConnectionError):
        await anext(driver.stream_events([], model="m"))


def test_lazy_exports() -> None:
    assert LiteLLMDriver is DirectLiteLLMDriver
