"""Tests for the LiteLLM driver with a patched acompletion."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from stream_multi.drivers.litellm import LiteLLMDriver, _accumulate_tool_call_delta
from stream_multi.errors import LLMServiceError
from stream_multi.events import ErrorEvent, Finish, TextDelta, ToolCall, ToolCallDelta


def _chunk(content=None, tool_calls=None, finish_reason=None):
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)])


def _fragment(index, id=None, name=None, arguments=None):
    return SimpleNamespace(
        index=index,
        id=id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


async def _response(chunks, fail_with=None):
    for chunk in chunks:
        yield chunk
    if fail_with is not None:
        raise fail_with


async def _collect(driver, **kwargs):
    kwargs.setdefault("messages", [{"role": "user", "content": "hi"}])
    kwargs.setdefault("model", "gpt-4o-mini")
    return [event async for event in driver.stream_events(**kwargs)]


@pytest.fixture
def acompletion():
    with patch("stream_multi.drivers.litellm.litellm.acompletion", new_callable=AsyncMock) as mock:
        yield mock


class TestAccumulateToolCallDelta:
    def test_fragments_concatenate(self) -> None:
        accumulated: list[dict] = []
        _accumulate_tool_call_delta(accumulated, _fragment(0, id="c1", name="lookup"))
        _accumulate_tool_call_delta(accumulated, _fragment(0, arguments='{"q": '))
        call = _accumulate_tool_call_delta(accumulated, _fragment(0, arguments='"x"}'))
        assert call == {"id": "c1", "name": "lookup", "arguments": '{"q": "x"}'}

    def test_parallel_calls(self) -> None:
        accumulated: list[dict] = []
        _accumulate_tool_call_delta(accumulated, _fragment(1, id="c2", name="b"))
        assert len(accumulated) == 2
        assert accumulated[0]["id"] == ""


class TestLiteLLMDriver:
    @pytest.mark.asyncio
    async def test_text_stream(self, acompletion: AsyncMock) -> None:
        acompletion.return_value = _response([
            _chunk(content="Hel"),
            _chunk(content="lo"),
            _chunk(finish_reason="stop"),
        ])
        events = await _collect(LiteLLMDriver())
        assert events == [TextDelta(text="Hel"), TextDelta(text="lo"), Finish(finish_reason="stop")]

    @pytest.mark.asyncio
    async def test_tool_call_fragments(self, acompletion: AsyncMock) -> None:
        acompletion.return_value = _response([
            _chunk(content="Checking"),
            _chunk(tool_calls=[_fragment(0, id="c1", name="lookup", arguments='{"q":')]),
            _chunk(tool_calls=[_fragment(0, arguments=' "x"}')]),
            _chunk(finish_reason="tool_calls"),
        ])
        events = await _collect(LiteLLMDriver())

        assert events[0] == TextDelta(text="Checking")
        assert events[1] == ToolCallDelta(id="c1", name="lookup", args_delta='{"q":')
        assert events[2] == ToolCallDelta(id="c1", name="lookup", args_delta=' "x"}')
        assert events[3] == ToolCall(id="c1", name="lookup", args={"q": "x"})
        assert events[4] == Finish(finish_reason="tool_calls")

    @pytest.mark.asyncio
    async def test_invalid_arguments_kept_raw(self, acompletion: AsyncMock) -> None:
        acompletion.return_value = _response([
            _chunk(tool_calls=[_fragment(0, id="c1", name="lookup", arguments="{broken")]),
            _chunk(finish_reason="tool_calls"),
        ])
        events = await _collect(LiteLLMDriver())
        assert events[1] == ToolCall(id="c1", name="lookup", args="{broken")

    @pytest.mark.asyncio
    async def test_request_failure(self, acompletion: AsyncMock) -> None:
        cause = ConnectionError("refused")
        acompletion.side_effect = cause
        with pytest.raises(LLMServiceError) as exc_info:
            await _collect(LiteLLMDriver())
        assert exc_info.value.cause is cause

    @pytest.mark.asyncio
    async def test_midstream_failure(self, acompletion: AsyncMock) -> None:
        acompletion.return_value = _response(
            [_chunk(content="partial")], fail_with=TimeoutError("stalled")
        )
        events = await _collect(LiteLLMDriver())
        assert events[0] == TextDelta(text="partial")
        assert isinstance(events[1], ErrorEvent)
        assert isinstance(events[1].error, LLMServiceError)
        assert len(events) == 2

    @pytest.mark.asyncio
    async def test_completion_kwargs(self, acompletion: AsyncMock) -> None:
        acompletion.return_value = _response([_chunk(finish_reason="stop")])
        tools = [{"type": "function", "function": {"name": "lookup"}}]
        driver = LiteLLMDriver(api_key="sk-test", api_base="http://localhost:4000")

        await _collect(driver, tools=tools, temperature=0.1)

        kwargs = acompletion.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.1
        assert kwargs["tools"] == tools
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["api_base"] == "http://localhost:4000"
