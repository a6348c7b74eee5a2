"""Tests for the stream-multi CLI."""

import json
from pathlib import Path

from typer.testing import CliRunner

from stream_multi.cli import app, load_events
from stream_multi.events import ErrorEvent, TextDelta, ToolCall

runner = CliRunner()


def _write_events(path: Path, events: list[dict]) -> Path:
    path.write_text("\n".join(json.dumps(event) for event in events) + "\n")
    return path


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "stream-multi 0.1.0" in result.output


def test_help() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "ordered text and tool segments" in result.output


def test_load_events(tmp_path: Path) -> None:
    path = _write_events(
        tmp_path / "session.jsonl",
        [
            {"type": "text-delta", "text": "Hi"},
            {"type": "tool-call", "id": "1", "name": "lookup", "args": {"q": "x"}},
            {"type": "error", "message": "overloaded"},
        ],
    )
    events = load_events(path)
    assert isinstance(events[0], TextDelta)
    assert isinstance(events[1], ToolCall)
    assert events[1].args == {"q": "x"}
    assert isinstance(events[2], ErrorEvent)
    assert str(events[2].error) == "overloaded"


def test_replay(tmp_path: Path) -> None:
    path = _write_events(
        tmp_path / "session.jsonl",
        [
            {"type": "text-delta", "text": "Looking it up"},
            {"type": "tool-call", "id": "1", "name": "lookup", "args": {"q": "x"}},
            {"type": "finish"},
        ],
    )
    result = runner.invoke(app, ["replay", str(path)])
    assert result.exit_code == 0
    assert "2 segments" in result.output


def test_replay_error_event(tmp_path: Path) -> None:
    path = _write_events(
        tmp_path / "session.jsonl",
        [{"type": "text-delta", "text": "partial"}, {"type": "error", "message": "overloaded"}],
    )
    result = runner.invoke(app, ["replay", str(path)])
    assert result.exit_code == 1
    assert "Generation failed" in result.output


def test_replay_invalid_line(tmp_path: Path) -> None:
    path = tmp_path / "session.jsonl"
    path.write_text('{"type": "text-delta", "text": "ok"}\nnot json\n')
    result = runner.invoke(app, ["replay", str(path)])
    assert result.exit_code == 2


def test_replay_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["replay", str(tmp_path / "missing.jsonl")])
    assert result.exit_code == 2
