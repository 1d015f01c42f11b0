"""Test lifecycle events and run results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

UNKNOWN_TEST = "Unknown test"


class TestStatus(str, Enum):
    """Status of a finished test."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TestStarting:
    """A test is about to run."""

    test_id: str
    display_name: str


@dataclass
class TestPassed:
    """A test passed."""

    test_id: str
    display_name: Optional[str] = None
    duration_ms: int = 0


@dataclass
class TestFailed:
    """A test failed or errored."""

    test_id: str
    message: str = ""
    stack_trace: str = ""
    display_name: Optional[str] = None
    duration_ms: int = 0


@dataclass
class TestSkipped:
    """A test was skipped."""

    test_id: str
    reason: str = ""
    display_name: Optional[str] = None


@dataclass
class TestResult:
    """Represents the result of a single test."""

    test_id: str = ""
    display_name: str = ""
    status: TestStatus = TestStatus.PASSED
    duration_ms: int = 0
    message: str = ""
    stack_trace: str = ""
    skip_reason: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "test_id": self.test_id,
            "display_name": self.display_name,
            "status": self.status.value if isinstance(self.status, TestStatus) else self.status,
            "duration_ms": self.duration_ms,
            "message": self.message,
            "stack_trace": self.stack_trace,
            "skip_reason": self.skip_reason,
        }


@dataclass
class RunSummary:
    """Outcome of a whole test run."""

    results: list[TestResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    def _count(self, status: TestStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def passed(self) -> int:
        return self._count(TestStatus.PASSED)

    @property
    def failed(self) -> int:
        return self._count(TestStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(TestStatus.SKIPPED)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 1 if any test failed, 0 otherwise."""
        return 1 if self.failed > 0 else 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "duration_seconds": round(self.duration_seconds, 3),
            "exit_code": self.exit_code,
            "results": [r.to_dict() for r in self.results],
            "failed_tests": [
                r.to_dict() for r in self.results if r.status == TestStatus.FAILED
            ],
        }


def display_name_from_nodeid(nodeid: str) -> str:
    """Turn a pytest node id into a short display name.

    ``tests/test_money.py::TestAdd::test_sum[1-2]`` becomes
    ``TestAdd.test_sum[1-2]``. Ids without a ``::`` part are returned as-is.
    """
    # Parametrize ids may contain "::", so split them off first
    base, bracket, params = nodeid.partition("[")
    parts = base.split("::")
    if len(parts) == 1:
        return nodeid
    return ".".join(parts[1:]) + bracket + params


def display_name_from_test_id(test_id: str) -> str:
    """Turn a unittest id (``module.Class.method``) into ``Class.method``.

    Subtest ids keep their parameter description, e.g.
    ``Class.method (n=1)``.
    """
    base, space, description = test_id.partition(" ")
    parts = base.split(".")
    if len(parts) < 3:
        return test_id
    return ".".join(parts[-2:]) + space + description
