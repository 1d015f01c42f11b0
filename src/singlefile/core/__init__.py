"""Core test execution functionality."""

from singlefile.core.runner import TestRunner, resolve_script_path, run_tests
from singlefile.core.sink import ConsoleSink, EventSink

__all__ = ["TestRunner", "ConsoleSink", "EventSink", "resolve_script_path", "run_tests"]
