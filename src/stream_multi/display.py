"""Rich display of a generation's display sink."""

from typing import Any

from pydantic import BaseModel
from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.pretty import Pretty
from rich.text import Text

from stream_multi.components import Message, ToolMessage
from stream_multi.sinks import SinkState, StreamableUI, StreamableValue

console = Console()


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]✗[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[bold blue]ℹ[/] {message}")


def render_node(node: Any) -> RenderableType:
    """Convert one display node into a rich renderable."""
    if isinstance(node, Message):
        return Markdown(node.text)
    if isinstance(node, ToolMessage):
        current = node.current
        body = Text("…", style="dim") if current is None else render_node(current)
        pending = isinstance(node.children, StreamableUI) and not node.children.closed
        return Panel(body, title="tool", border_style="yellow" if pending else "cyan")
    if isinstance(node, StreamableUI):
        return render_snapshot(node.value)
    if isinstance(node, StreamableValue):
        return Text(node.value)
    if isinstance(node, str):
        return Text(node)
    if isinstance(node, BaseModel):
        return Pretty(node.model_dump())
    return Pretty(node)


def render_snapshot(nodes: list[Any]) -> Group:
    """Render the current nodes of a display sink."""
    return Group(*(render_node(node) for node in nodes))


async def watch_ui(
    ui: StreamableUI,
    output: Console | None = None,
    refresh_per_second: float = 8,
) -> list[Any]:
    """Show a display sink live until it is sealed.

    Nested sinks (streaming text, tool output) are re-read on every refresh.

    Returns:
        The final nodes.

    Raises:
        BaseException: The cause the sink was sealed with, if it failed.
    """
    with Live(
        console=output or console,
        refresh_per_second=refresh_per_second,
        get_renderable=lambda: render_snapshot(ui.value),
    ) as live:
        try:
            return await ui.wait()
        finally:
            live.refresh()


def describe_state(ui: StreamableUI) -> str:
    if ui.state is SinkState.ERROR:
        return f"failed: {ui.error_cause}"
    return ui.state.value
