"""Event sinks that turn test lifecycle events into console output."""

import threading
from typing import Optional

from rich.console import Console
from rich.text import Text

from singlefile.core.events import (
    UNKNOWN_TEST,
    RunSummary,
    TestFailed,
    TestPassed,
    TestResult,
    TestSkipped,
    TestStarting,
    TestStatus,
)

DETAIL_INDENT = " " * 9


class EventSink:
    """Receives test lifecycle events from an engine.

    Engines call :meth:`handle` with one of the event dataclasses; subclasses
    override the ``on_*`` hooks they care about.
    """

    def handle(self, event) -> None:
        """Dispatch an event to its handler."""
        if isinstance(event, TestStarting):
            self.on_test_starting(event)
        elif isinstance(event, TestPassed):
            self.on_test_passed(event)
        elif isinstance(event, TestFailed):
            self.on_test_failed(event)
        elif isinstance(event, TestSkipped):
            self.on_test_skipped(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def on_test_starting(self, event: TestStarting) -> None:
        pass

    def on_test_passed(self, event: TestPassed) -> None:
        pass

    def on_test_failed(self, event: TestFailed) -> None:
        pass

    def on_test_skipped(self, event: TestSkipped) -> None:
        pass


class ConsoleSink(EventSink):
    """Counts outcomes and prints one colored line per finished test."""

    def __init__(self, console: Optional[Console] = None, show_stack_traces: bool = True):
        """Initialize the sink.

        Args:
            console: Rich console to write to (default: stdout)
            show_stack_traces: Print stack trace lines under failures
        """
        self.console = console or Console()
        self.show_stack_traces = show_stack_traces

        self._lock = threading.Lock()
        self._names: dict[str, str] = {}
        self._results: list[TestResult] = []
        self.passed = 0
        self.failed = 0
        self.skipped = 0

    def resolve_name(self, test_id: str, display_name: Optional[str] = None) -> str:
        """Name to show for a test: explicit name, then lookup table, then a placeholder."""
        if display_name:
            return display_name
        return self._names.get(test_id, UNKNOWN_TEST)

    def on_test_starting(self, event: TestStarting) -> None:
        with self._lock:
            self._names[event.test_id] = event.display_name

    def on_test_passed(self, event: TestPassed) -> None:
        with self._lock:
            self.passed += 1
            name = self.resolve_name(event.test_id, event.display_name)
            self._results.append(
                TestResult(
                    test_id=event.test_id,
                    display_name=name,
                    status=TestStatus.PASSED,
                    duration_ms=event.duration_ms,
                )
            )
            self._print_line("  [PASS] ", "green", name)

    def on_test_failed(self, event: TestFailed) -> None:
        with self._lock:
            self.failed += 1
            name = self.resolve_name(event.test_id, event.display_name)
            self._results.append(
                TestResult(
                    test_id=event.test_id,
                    display_name=name,
                    status=TestStatus.FAILED,
                    duration_ms=event.duration_ms,
                    message=event.message,
                    stack_trace=event.stack_trace,
                )
            )
            self._print_line("  [FAIL] ", "red", name)
            if event.message:
                self._print_detail(event.message)
            if self.show_stack_traces and event.stack_trace:
                for line in event.stack_trace.rstrip("\n").split("\n"):
                    self._print_detail(line)

    def on_test_skipped(self, event: TestSkipped) -> None:
        with self._lock:
            self.skipped += 1
            name = self.resolve_name(event.test_id, event.display_name)
            self._results.append(
                TestResult(
                    test_id=event.test_id,
                    display_name=name,
                    status=TestStatus.SKIPPED,
                    skip_reason=event.reason,
                )
            )
            self._print_line("  [SKIP] ", "yellow", f"{name} - {event.reason}")

    def summary(self, duration_seconds: float) -> RunSummary:
        """Snapshot the results collected so far."""
        with self._lock:
            return RunSummary(results=list(self._results), duration_seconds=duration_seconds)

    def print_summary(self, summary: RunSummary) -> None:
        """Print the totals block shown after a run."""
        with self._lock:
            self.console.print()
            self._print_plain(f"Test run completed in {summary.duration_seconds:.2f}s")
            self._print_plain(f"Total tests: {summary.total}")

            for label, count, style in (
                ("Passed", summary.passed, "green"),
                ("Failed", summary.failed, "red"),
                ("Skipped", summary.skipped, "yellow"),
            ):
                if count > 0:
                    self.console.print(
                        Text(f"  {label}: {count}", style=style),
                        highlight=False,
                        soft_wrap=True,
                    )

    def _print_line(self, tag: str, style: str, text: str) -> None:
        # Text objects keep test names like "test_x[a-b]" from being read as markup
        self.console.print(Text.assemble((tag, style), text), highlight=False, soft_wrap=True)

    def _print_detail(self, line: str) -> None:
        self._print_plain(f"{DETAIL_INDENT}{line}")

    def _print_plain(self, line: str) -> None:
        self.console.print(Text(line), highlight=False, soft_wrap=True)
