"""Base test engine interface."""

import sys
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from singlefile.core.events import TestFailed, TestStarting
from singlefile.core.sink import EventSink


@contextmanager
def script_imports(script: Path) -> Iterator[None]:
    """Forget what a run imported from the script's directory.

    Modules loaded from the script's folder (the script itself, sibling
    helpers, their parent packages) are dropped from ``sys.modules`` and
    ``sys.path`` is restored, so the next run in the same process
    imports the files again.
    """
    script_dir = script.resolve().parent
    modules_before = set(sys.modules)
    path_before = list(sys.path)
    try:
        yield
    finally:
        sys.path[:] = path_before
        added = set(sys.modules) - modules_before
        forgotten = set()
        for name in added:
            module_file = getattr(sys.modules.get(name), "__file__", None)
            if module_file and Path(module_file).resolve().is_relative_to(script_dir):
                forgotten.add(name)
        for name in added:
            if name in forgotten or any(f.startswith(name + ".") for f in forgotten):
                sys.modules.pop(name, None)


@dataclass
class DiscoveredTest:
    """Represents a discovered test."""

    test_id: str
    display_name: str
    file_path: str = ""
    line_number: Optional[int] = None


@dataclass
class DiscoveryResult:
    """Result of test discovery."""

    tests: list[DiscoveredTest] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        """Check if discovery was successful."""
        return self.error is None

    @property
    def total_count(self) -> int:
        return len(self.tests)


class TestEngine(ABC):
    """Abstract base class for in-process test engines."""

    name: str = ""

    @abstractmethod
    def run(self, script: Path, sink: EventSink, keyword: Optional[str] = None) -> None:
        """Run the tests defined in a script, reporting outcomes to the sink.

        Args:
            script: Path of the Python file holding the tests
            sink: Receives one starting event and one outcome per test
            keyword: Optional substring filter on test names

        Raises:
            EngineError: If the engine itself could not run
        """
        pass

    @abstractmethod
    def discover(self, script: Path, keyword: Optional[str] = None) -> DiscoveryResult:
        """List the tests a script defines without running them."""
        pass

    @staticmethod
    def report_collection_error(
        sink: EventSink, script: Path, message: str, stack_trace: str = ""
    ) -> None:
        """Report a script that could not be loaded as a single failed test."""
        test_id = f"collection::{script}"
        sink.handle(TestStarting(test_id=test_id, display_name=f"collection of {script.name}"))
        sink.handle(TestFailed(test_id=test_id, message=message, stack_trace=stack_trace))
