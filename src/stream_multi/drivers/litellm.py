"""LiteLLM driver producing generation events."""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import litellm

from stream_multi.errors import LLMServiceError
from stream_multi.events import ErrorEvent, Event, Finish, TextDelta, ToolCall, ToolCallDelta

logger = logging.getLogger(__name__)


def _accumulate_tool_call_delta(
    accumulated: list[dict[str, Any]],
    tool_call_delta: Any,
) -> dict[str, Any]:
    """Accumulate a tool call delta into the accumulated list.

    Streaming tool calls arrive in fragments indexed by tool call position;
    fragments are concatenated until the stream completes.
    """
    idx = tool_call_delta.index
    while idx >= len(accumulated):
        accumulated.append({"id": "", "name": "", "arguments": ""})

    if tool_call_delta.id:
        accumulated[idx]["id"] = tool_call_delta.id
    if tool_call_delta.function:
        if tool_call_delta.function.name:
            accumulated[idx]["name"] = tool_call_delta.function.name
        if tool_call_delta.function.arguments:
            accumulated[idx]["arguments"] += tool_call_delta.function.arguments
    return accumulated[idx]


def _decode_arguments(raw: str) -> Any:
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Tool call arguments are not valid JSON: %r", raw)
        return raw


class LiteLLMDriver:
    """LLM driver using LiteLLM for multi-provider support.

    Model names follow LiteLLM conventions:
    - OpenAI: "gpt-4o", "gpt-4o-mini"
    - Anthropic: "claude-3-5-sonnet-latest"
    - Azure: "azure/deployment-name"
    - Ollama: "ollama/llama3.2"
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_headers: dict[str, str] | None = None,
    ):
        """Initialize the LiteLLM driver.

        Args:
            api_key: Optional API key (uses env vars by default).
            api_base: Optional custom API base URL.
            default_headers: Optional headers for all requests.
        """
        self._api_key = api_key
        self._api_base = api_base
        self._default_headers = default_headers or {}

    def _build_completion_kwargs(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None,
        temperature: float,
    ) -> dict[str, Any]:
        """Build kwargs for litellm.acompletion."""
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "stream": True,
        }
        if tools:
            kwargs["tools"] = tools
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        if self._default_headers:
            kwargs["extra_headers"] = self._default_headers
        return kwargs

    async def stream_events(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[Event]:
        """Stream a chat completion as generation events.

        Tool calls are only emitted as ToolCall once the provider reports a
        finish reason; until then their fragments are ToolCallDelta events.

        Args:
            messages: Conversation history in OpenAI format.
            model: Model identifier (e.g., "gpt-4o", "claude-3-opus").
            tools: Tool definitions in OpenAI format.
            temperature: Sampling temperature.

        Yields:
            Events ending with Finish, or with ErrorEvent if streaming fails.

        Raises:
            LLMServiceError: If the completion request fails.
        """
        kwargs = self._build_completion_kwargs(messages, model, tools, temperature)

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            raise LLMServiceError(f"LLM completion failed: {e}", cause=e) from e

        logger.info("Streaming completion from %s", model)
        accumulated_tool_calls: list[dict[str, Any]] = []
        finish_reason: str | None = None

        try:
            async for chunk in response:
                if not chunk.choices:
                    continue

                delta = chunk.choices[0].delta
                content = getattr(delta, "content", None)
                if content:
                    yield TextDelta(text=content)

                for tc in getattr(delta, "tool_calls", None) or []:
                    call = _accumulate_tool_call_delta(accumulated_tool_calls, tc)
                    fragment = tc.function.arguments if tc.function else None
                    yield ToolCallDelta(
                        id=call["id"], name=call["name"] or None, args_delta=fragment or ""
                    )

                if chunk.choices[0].finish_reason:
                    finish_reason = chunk.choices[0].finish_reason
                    break
        except Exception as e:
            logger.warning("LLM streaming failed: %s", e)
            yield ErrorEvent(error=LLMServiceError(f"LLM streaming failed: {e}", cause=e))
            return

        for call in accumulated_tool_calls:
            yield ToolCall(
                id=call["id"], name=call["name"], args=_decode_arguments(call["arguments"])
            )
        yield Finish(finish_reason=finish_reason)
