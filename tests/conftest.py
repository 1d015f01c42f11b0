"""Shared fixtures for SingleFile tests."""

import io
import textwrap
from pathlib import Path

import pytest
from rich.console import Console

from singlefile.core.sink import EventSink


class RecordingSink(EventSink):
    """Sink that keeps every event it receives."""

    def __init__(self):
        self.events = []

    def handle(self, event) -> None:
        self.events.append(event)
        super().handle(event)

    def of_type(self, event_type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def output():
    """A plain console writing into a buffer, plus the buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, no_color=True, width=200, force_terminal=False)
    return console, buffer


@pytest.fixture
def write_script(tmp_path):
    """Write a dedented Python script into the temp directory."""

    def _write(source: str, name: str = "script.py") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source))
        return path

    return _write
