"""Test engines that run a script's tests in-process."""

import re
from pathlib import Path
from typing import Optional

from singlefile.config import RunnerConfig
from singlefile.core.engines.base import DiscoveredTest, DiscoveryResult, TestEngine
from singlefile.core.engines.pytest_engine import PytestEngine
from singlefile.core.engines.unittest_engine import UnittestEngine
from singlefile.errors import EngineError

_PYTEST_IMPORT = re.compile(r"^\s*(?:import|from)\s+pytest\b", re.MULTILINE)

# unittest.mock alone is a helper library, not a sign of TestCase-based tests
_UNITTEST_IMPORT = re.compile(
    r"^\s*(?:import\s+unittest\b(?!\.mock)|from\s+unittest\s+import\s+(?!\(?\s*mock\b))",
    re.MULTILINE,
)


def detect_engine(script: Path) -> str:
    """Pick an engine from a script's imports.

    Scripts that import unittest but not pytest run under unittest.
    Importing only ``unittest.mock`` does not count. Everything else runs
    under pytest, which also collects TestCases.
    """
    try:
        source = script.read_text(encoding="utf-8")
    except OSError:
        return PytestEngine.name
    if _UNITTEST_IMPORT.search(source) and not _PYTEST_IMPORT.search(source):
        return UnittestEngine.name
    return PytestEngine.name


def get_engine(
    name: str,
    config: Optional[RunnerConfig] = None,
    script: Optional[Path] = None,
) -> TestEngine:
    """Create the engine called ``name``.

    Args:
        name: "pytest", "unittest" or "auto"
        config: Configuration supplying engine options
        script: Script to inspect when name is "auto"
    """
    config = config or RunnerConfig()
    name = name.lower()

    if name == "auto":
        name = detect_engine(script) if script is not None else PytestEngine.name

    if name == PytestEngine.name:
        return PytestEngine(extra_args=config.pytest.args)
    if name == UnittestEngine.name:
        return UnittestEngine()

    raise EngineError(f"Unknown engine: {name}")


__all__ = [
    "TestEngine",
    "PytestEngine",
    "UnittestEngine",
    "DiscoveredTest",
    "DiscoveryResult",
    "detect_engine",
    "get_engine",
]
