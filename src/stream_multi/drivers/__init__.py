"""Model drivers that produce generation events.

Import drivers directly from their modules to avoid loading LiteLLM when it
is not needed:
    from stream_multi.drivers.mocks import ScriptedDriver
"""

__all__ = ["LiteLLMDriver", "ScriptedDriver"]


def __getattr__(name: str) -> type:
    """Lazy imports so litellm loads only when the driver is used."""
    if name == "LiteLLMDriver":
        from stream_multi.drivers.litellm import LiteLLMDriver

        return LiteLLMDriver
    if name == "ScriptedDriver":
        from stream_multi.drivers.mocks import ScriptedDriver

        return ScriptedDriver
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
