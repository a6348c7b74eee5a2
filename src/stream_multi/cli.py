"""stream-multi CLI - Main entry point.

Commands:
- run: Stream a model completion and show its segments live
- replay: Feed a JSONL file of events through the segment pipeline
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import ValidationError

from stream_multi import __version__
from stream_multi.config import get_settings
from stream_multi.display import console, describe_state, print_error, print_info, watch_ui
from stream_multi.drivers.mocks import ScriptedDriver
from stream_multi.events import Event, ToolCall, parse_event
from stream_multi.segments import TextSegment, ToolCallSegment
from stream_multi.stream import stream_multi

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="stream-multi - Render model output as ordered text and tool segments.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"stream-multi {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )


def _echo_renderer(*args: Any, **kwargs: Any) -> Any:
    return kwargs if kwargs else (args[0] if args else None)


def _log_segment(segment: TextSegment | ToolCallSegment) -> None:
    logger.info("Segment closed: %s", segment.kind)


def load_events(path: Path) -> list[Event]:
    """Read one JSON event per line, skipping blank lines."""
    events: list[Event] = []
    for lineno, line in enumerate(path.read_text().splitlines(), 1):
        if not line.strip():
            continue
        try:
            events.append(parse_event(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            raise typer.BadParameter(f"{path}:{lineno}: {e}") from e
    return events


async def _show(result_coro: Any) -> int:
    result = await result_coro
    try:
        await watch_ui(result.ui, console)
    except Exception as e:
        print_error(f"Generation failed: {e}")
        return 1
    print_info(f"{len(result.segments)} segments, {describe_state(result.ui)}")
    return 0


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """stream-multi - Render model output as ordered text and tool segments."""
    pass


@app.command()
def run(
    prompt: Annotated[str, typer.Argument(help="User message to send to the model")],
    model: Annotated[
        Optional[str], typer.Option("--model", "-m", help="LiteLLM model name")
    ] = None,
    temperature: Annotated[
        Optional[float], typer.Option("--temperature", "-t", help="Sampling temperature")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Stream a completion and show text segments as they arrive.

    Examples:
        stream-multi run "Summarize the plot of Hamlet"
        stream-multi run "Hello" --model claude-3-5-sonnet-latest
    """
    _setup_logging(verbose)
    messages = [{"role": "user", "content": prompt}]
    coro = stream_multi(
        messages,
        model=model,
        temperature=temperature,
        initial="Thinking...",
        on_segment=_log_segment,
    )
    raise typer.Exit(asyncio.run(_show(coro)))


@app.command()
def replay(
    path: Annotated[
        Path, typer.Argument(help="JSONL file with one event per line", exists=True, dir_okay=False)
    ],
    delay: Annotated[
        float, typer.Option("--delay", "-d", help="Seconds between events")
    ] = 0.0,
    echo: Annotated[
        bool, typer.Option("--echo/--no-echo", help="Render tool calls by echoing their arguments")
    ] = True,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Replay recorded events through the segment pipeline.

    Examples:
        stream-multi replay session.jsonl
        stream-multi replay session.jsonl --delay 0.05 --no-echo
    """
    _setup_logging(verbose)
    events = load_events(path)
    tools: dict[str, Any] = {}
    if echo:
        tools = {e.name: _echo_renderer for e in events if isinstance(e, ToolCall)}
    coro = stream_multi(
        [],
        model="replay",
        tools=tools,
        driver=ScriptedDriver(events, delay=delay),
        on_segment=_log_segment,
    )
    raise typer.Exit(asyncio.run(_show(coro)))


if __name__ == "__main__":
    app()
