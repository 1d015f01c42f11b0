"""Test run orchestration for single-file scripts."""

import importlib.util
import json
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from singlefile.config import RunnerConfig
from singlefile.core.engines import DiscoveryResult, TestEngine, get_engine
from singlefile.core.events import RunSummary
from singlefile.core.sink import ConsoleSink
from singlefile.errors import EngineError, ScriptNotFoundError

_active = threading.local()


def _running_program() -> Optional[str]:
    main = sys.modules.get("__main__")
    main_file = getattr(main, "__file__", None)
    if main_file:
        return main_file
    if sys.argv and sys.argv[0] and sys.argv[0] != "-c":
        return sys.argv[0]
    return None


def resolve_script_path(path: Path | str | None = None) -> Path:
    """Find the Python source file holding the tests.

    With no path, the running program is used. Compiled ``.pyc`` files map
    back to their source, and a bare name gets a ``.py`` suffix.

    Raises:
        ScriptNotFoundError: If no source file can be found
    """
    if path is None:
        path = _running_program()
        if path is None:
            raise ScriptNotFoundError("Cannot determine the running script; pass a path explicitly")

    candidate = Path(path).expanduser()

    if candidate.suffix == ".pyc":
        try:
            source = Path(importlib.util.source_from_cache(str(candidate)))
        except ValueError:
            # Legacy layout: foo.pyc next to foo.py
            source = candidate.with_suffix(".py")
        candidate = source
    elif candidate.suffix == "":
        with_suffix = candidate.with_name(candidate.name + ".py")
        if not candidate.is_file() and with_suffix.is_file():
            candidate = with_suffix

    if not candidate.is_file():
        raise ScriptNotFoundError(f"Test script not found: {candidate}")

    return candidate.resolve()


class TestRunner:
    """Runs the tests of one script and prints results as they finish."""

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        console: Optional[Console] = None,
        verbose: bool = False,
    ):
        """Initialize the test runner."""
        self.config = config or RunnerConfig()
        self.console = console or Console(no_color=not self.config.output.color)
        self.verbose = verbose

    def get_engine(self, script: Path) -> TestEngine:
        engine = get_engine(self.config.engine, self.config, script)
        if self.verbose:
            self.console.print(
                f"[dim]Using {engine.name} engine for {escape(str(script))}[/dim]", soft_wrap=True
            )
        return engine

    def run(self, script: Path | str | None = None, keyword: Optional[str] = None) -> RunSummary:
        """Run the tests in a script.

        Args:
            script: Script path (default: the running program)
            keyword: Optional filter on test names

        Returns:
            RunSummary of the finished run

        Raises:
            ScriptNotFoundError: If the script cannot be found
            EngineError: If the engine fails or a run is already in progress
        """
        if getattr(_active, "running", False):
            raise EngineError(
                "run_tests() was called while tests are already running; "
                "guard it with: if __name__ == \"__main__\":"
            )

        script_path = resolve_script_path(script)
        engine = self.get_engine(script_path)
        sink = ConsoleSink(self.console, show_stack_traces=self.config.output.stack_traces)

        self.console.print("Discovering and running tests...\n", highlight=False)

        start_time = time.time()
        _active.running = True
        try:
            engine.run(script_path, sink, keyword=keyword)
        finally:
            _active.running = False
        duration = time.time() - start_time

        summary = sink.summary(duration)
        sink.print_summary(summary)
        if summary.total == 0:
            self.console.print(
                f"[dim]No tests found in {escape(script_path.name)} "
                f"(engine: {engine.name})[/dim]",
                soft_wrap=True,
            )

        report_path = self.config.get_report_path(script_path.parent)
        if report_path is not None:
            self.write_report(summary, report_path)

        return summary

    def discover(self, script: Path | str | None = None, keyword: Optional[str] = None) -> DiscoveryResult:
        """List the tests in a script without running them."""
        script_path = resolve_script_path(script)
        return self.get_engine(script_path).discover(script_path, keyword=keyword)

    def write_report(self, summary: RunSummary, path: Path | str) -> Path:
        """Write a JSON summary of the run."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(summary.to_dict(), f, indent=2)

        if self.verbose:
            self.console.print(f"[dim]Wrote report to {escape(str(path))}[/dim]", soft_wrap=True)
        return path


def run_tests(
    script: Path | str | None = None,
    engine: Optional[str] = None,
    keyword: Optional[str] = None,
    config: Optional[RunnerConfig] = None,
    console: Optional[Console] = None,
) -> int:
    """Discover and run the tests in the current script.

    Meant to be the last line of a single-file test script::

        if __name__ == "__main__":
            raise SystemExit(run_tests())

    Returns:
        0 if no test failed, 1 otherwise
    """
    script_path = resolve_script_path(script)
    if config is None:
        config = RunnerConfig.load_or_default(script_path.parent)
    if engine is not None:
        config = RunnerConfig.model_validate({**config.model_dump(), "engine": engine})

    runner = TestRunner(config, console=console)
    return runner.run(script_path, keyword=keyword).exit_code
