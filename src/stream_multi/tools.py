"""Tool definitions: the schema sent to the model plus the renderer.

A tool's ``generate`` function is called with the arguments of a completed
tool call and may return a plain node, an awaitable, a generator or an async
generator (see stream_multi.scheduler.render_to_sink).

Example:
    @tool
    async def get_weather(city: str) -> AsyncIterator[str]:
        '''Look up the current weather.

        Args:
            city: City name
        '''
        yield f"Checking {city}..."
        yield f"{city}: 21C"
"""

import inspect
from collections.abc import Callable
from typing import Any, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, Field


class Tool(BaseModel):
    """A tool the model can call and the renderer for its calls."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )
    generate: Callable[..., Any] | None = None

    @classmethod
    def from_function(cls, func: Callable[..., Any]) -> "Tool":
        """Build a Tool whose renderer is ``func``.

        The parameter schema comes from the signature and type hints;
        descriptions come from the docstring's ``Args:`` section.
        """
        summary, arg_docs = parse_docstring(inspect.getdoc(func) or "")
        hints = get_type_hints(func)

        properties: dict[str, Any] = {}
        required: list[str] = []
        for name, param in inspect.signature(func).parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            properties[name] = {
                **json_schema_for(hints.get(name, str)),
                "description": arg_docs.get(name, f"Parameter {name}"),
            }
            if param.default is param.empty:
                required.append(name)

        return cls(
            name=func.__name__,
            description=summary or f"Call {func.__name__}",
            parameters={"type": "object", "properties": properties, "required": required},
            generate=func,
        )

    def to_schema(self) -> dict[str, Any]:
        """The OpenAI function-tool format sent to the model."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


def tool(func: Callable[..., Any]) -> Tool:
    """Decorator form of ``Tool.from_function``."""
    return Tool.from_function(func)


def to_tool_schema(definition: Tool) -> dict[str, Any]:
    return definition.to_schema()


def tool_schemas(tools: dict[str, Any] | None) -> list[dict[str, Any]] | None:
    """Schemas for every Tool in a tools mapping.

    Plain callables are renderers only; they are not advertised to the model.
    """
    schemas = [t.to_schema() for t in (tools or {}).values() if isinstance(t, Tool)]
    return schemas or None


_SCALAR_TYPES: dict[Any, str] = {
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
}

_SECTIONS = ("args:", "returns:", "yields:", "raises:", "example:", "examples:")


def json_schema_for(annotation: Any) -> dict[str, Any]:
    """JSON schema of a parameter annotation. Unknown types map to string."""
    if annotation in _SCALAR_TYPES:
        return {"type": _SCALAR_TYPES[annotation]}
    origin = get_origin(annotation)
    if origin is list:
        (item,) = get_args(annotation) or (str,)
        return {"type": "array", "items": json_schema_for(item)}
    if origin is dict:
        return {"type": "object"}
    return {"type": "string"}


def parse_docstring(doc: str) -> tuple[str, dict[str, str]]:
    """Split a Google-style docstring into its summary and ``Args:`` entries."""
    summary: list[str] = []
    args: dict[str, str] = {}
    section: str | None = None
    for line in doc.strip().splitlines():
        stripped = line.strip()
        if stripped.lower() in _SECTIONS:
            section = stripped.lower()
        elif section is None:
            summary.append(stripped)
        elif section == "args:":
            name, sep, text = stripped.partition(":")
            if sep and name.isidentifier():
                args[name] = text.strip()
    return " ".join(s for s in summary if s), args
