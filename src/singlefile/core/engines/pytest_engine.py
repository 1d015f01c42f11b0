"""pytest engine: runs a script through ``pytest.main`` with an event plugin."""

from pathlib import Path
from typing import Optional

import pytest

from singlefile.core.engines.base import (
    DiscoveredTest,
    DiscoveryResult,
    TestEngine,
    script_imports,
)
from singlefile.core.events import (
    TestFailed,
    TestPassed,
    TestSkipped,
    TestStarting,
    display_name_from_nodeid,
)
from singlefile.core.sink import EventSink
from singlefile.errors import EngineError

SKIP_PREFIX = "Skipped: "


def _failure_message(report) -> str:
    """Short one-line description of a failed report."""
    crash = getattr(report.longrepr, "reprcrash", None)
    if crash is not None and getattr(crash, "message", None):
        return crash.message
    lines = [line for line in report.longreprtext.splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""


def _skip_reason(report) -> str:
    if isinstance(report.longrepr, tuple) and len(report.longrepr) == 3:
        reason = str(report.longrepr[2])
    else:
        reason = report.longreprtext
    if reason.startswith(SKIP_PREFIX):
        reason = reason[len(SKIP_PREFIX):]
    return reason


class _Outcome:
    """Merged setup/call/teardown outcome of one test."""

    def __init__(self):
        self.event = None
        self.duration = 0.0


class EventPlugin:
    """pytest plugin forwarding test lifecycle hooks to an event sink.

    pytest reports setup, call and teardown separately. They are merged here
    so that each test produces exactly one outcome, emitted when the test
    finishes. The first failing phase wins.
    """

    def __init__(self, sink: EventSink, script: Path):
        self.sink = sink
        self.script = script
        self._pending: dict[str, _Outcome] = {}

    def pytest_collectreport(self, report) -> None:
        if report.failed:
            TestEngine.report_collection_error(
                self.sink,
                self.script,
                _failure_message(report),
                report.longreprtext,
            )

    def pytest_runtest_logstart(self, nodeid: str, location) -> None:
        self._pending[nodeid] = _Outcome()
        self.sink.handle(TestStarting(test_id=nodeid, display_name=display_name_from_nodeid(nodeid)))

    def pytest_runtest_logreport(self, report) -> None:
        outcome = self._pending.setdefault(report.nodeid, _Outcome())
        outcome.duration += report.duration or 0.0

        if isinstance(outcome.event, TestFailed):
            return

        if report.failed:
            message = _failure_message(report)
            if report.when != "call":
                message = f"error in {report.when}: {message}"
            outcome.event = TestFailed(
                test_id=report.nodeid,
                message=message,
                stack_trace=report.longreprtext,
            )
        elif report.skipped:
            if hasattr(report, "wasxfail"):
                reason = f"expected failure: {report.wasxfail}" if report.wasxfail else "expected failure"
            else:
                reason = _skip_reason(report)
            outcome.event = TestSkipped(test_id=report.nodeid, reason=reason)
        elif report.when == "call":
            outcome.event = TestPassed(test_id=report.nodeid)

    def pytest_runtest_logfinish(self, nodeid: str, location) -> None:
        outcome = self._pending.pop(nodeid, None)
        if outcome is None or outcome.event is None:
            return
        event = outcome.event
        if not isinstance(event, TestSkipped):
            event.duration_ms = int(outcome.duration * 1000)
        self.sink.handle(event)


class CollectPlugin:
    """pytest plugin recording collected items."""

    def __init__(self):
        self.tests: list[DiscoveredTest] = []
        self.errors: list[str] = []

    def pytest_collectreport(self, report) -> None:
        if report.failed:
            self.errors.append(_failure_message(report))

    def pytest_collection_finish(self, session) -> None:
        for item in session.items:
            path, lineno, _ = item.location
            self.tests.append(
                DiscoveredTest(
                    test_id=item.nodeid,
                    display_name=display_name_from_nodeid(item.nodeid),
                    file_path=path,
                    line_number=lineno + 1 if lineno is not None else None,
                )
            )


class PytestEngine(TestEngine):
    """Runs tests in-process with pytest."""

    name = "pytest"

    def __init__(self, extra_args: Optional[list[str]] = None):
        """Initialize the engine.

        Args:
            extra_args: Additional command-line arguments for pytest
        """
        self.extra_args = list(extra_args or [])

    def build_args(self, script: Path, keyword: Optional[str] = None) -> list[str]:
        """Build the pytest argument list for a script."""
        args = [
            str(script),
            # Output comes from the sink, not pytest's own reporter
            "-p",
            "no:terminal",
            "-p",
            "no:cacheprovider",
            "--import-mode=importlib",
            f"--rootdir={script.parent}",
        ]
        if keyword:
            args.extend(["-k", keyword])
        args.extend(self.extra_args)
        return args

    def run(self, script: Path, sink: EventSink, keyword: Optional[str] = None) -> None:
        plugin = EventPlugin(sink, script)
        with script_imports(script):
            exit_code = pytest.main(self.build_args(script, keyword), plugins=[plugin])
        self._check_exit_code(exit_code)

    def discover(self, script: Path, keyword: Optional[str] = None) -> DiscoveryResult:
        plugin = CollectPlugin()
        args = self.build_args(script, keyword) + ["--collect-only"]
        with script_imports(script):
            exit_code = pytest.main(args, plugins=[plugin])
        if plugin.errors:
            return DiscoveryResult(tests=plugin.tests, error="; ".join(plugin.errors))
        self._check_exit_code(exit_code)
        return DiscoveryResult(tests=plugin.tests)

    @staticmethod
    def _check_exit_code(exit_code) -> None:
        if exit_code in (pytest.ExitCode.USAGE_ERROR, pytest.ExitCode.INTERNAL_ERROR):
            raise EngineError(f"pytest exited with {pytest.ExitCode(exit_code).name}")
