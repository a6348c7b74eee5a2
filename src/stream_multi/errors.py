"""Error definitions for stream-multi.

Structured error hierarchy for differentiated handling. Renderer and observer
exceptions are never wrapped; they reach the display sink unchanged.
"""


class StreamMultiError(Exception):
    """Base exception for all stream-multi errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(StreamMultiError):
    """Configuration or setup errors."""

    pass


class LLMServiceError(StreamMultiError):
    """LLM API errors (OpenAI, Anthropic, etc.)."""

    pass


class StreamEventError(StreamMultiError):
    """Error carried by an `error` event that was loaded from data."""

    pass


class SinkClosedError(StreamMultiError):
    """A sink was written to after it was sealed."""

    def __init__(self, state: str):
        super().__init__(f"Sink is already sealed ({state})")
        self.state = state


class SegmentClosedError(StreamMultiError):
    """A closed segment was extended."""

    def __init__(self, kind: str):
        super().__init__(f"Cannot extend a closed {kind} segment")
        self.kind = kind


class StreamHaltedError(StreamMultiError):
    """An event arrived after the demultiplexer processed a terminal event."""

    def __init__(self, event_type: str):
        super().__init__(f"Received '{event_type}' after the stream was halted")
        self.event_type = event_type
