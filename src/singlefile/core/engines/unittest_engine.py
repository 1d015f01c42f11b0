"""unittest engine: loads a script as a module and runs its TestCases."""

import hashlib
import importlib.util
import sys
import time
import traceback
import unittest
from pathlib import Path
from types import ModuleType
from typing import Optional

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
    display_name_from_test_id,
)
from singlefile.core.sink import EventSink


def _exception_message(err) -> str:
    exc_type, exc_value, _ = err
    return traceback.format_exception_only(exc_type, exc_value)[-1].strip()


def load_script_module(script: Path) -> ModuleType:
    """Import a script file as a module.

    When the script is the program currently running, the existing
    ``__main__`` module is reused instead of executing the file again.
    """
    main = sys.modules.get("__main__")
    main_file = getattr(main, "__file__", None)
    if main is not None and main_file and Path(main_file).resolve() == script.resolve():
        return main

    digest = hashlib.sha1(str(script.resolve()).encode()).hexdigest()[:8]
    module_name = f"singlefile_script_{script.stem}_{digest}"

    spec = importlib.util.spec_from_file_location(module_name, script)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load {script}")

    module = importlib.util.module_from_spec(spec)
    script_dir = str(script.parent)
    if script_dir not in sys.path:
        sys.path.insert(0, script_dir)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


class SinkTestResult(unittest.TestResult):
    """TestResult that forwards every callback to an event sink."""

    def __init__(self, sink: EventSink):
        super().__init__()
        self.sink = sink
        self._started_at: dict[str, float] = {}

    def _duration_ms(self, test) -> int:
        started = self._started_at.pop(test.id(), None)
        if started is None:
            return 0
        return int((time.time() - started) * 1000)

    def _inline_name(self, test) -> Optional[str]:
        # Subtests and setUpClass/setUpModule holders never reach startTest
        if isinstance(test, unittest.case._SubTest):
            return display_name_from_test_id(test.id())
        if isinstance(test, unittest.TestCase):
            return None
        return str(test)

    def startTest(self, test) -> None:
        super().startTest(test)
        self._started_at[test.id()] = time.time()
        self.sink.handle(
            TestStarting(test_id=test.id(), display_name=display_name_from_test_id(test.id()))
        )

    def addSuccess(self, test) -> None:
        super().addSuccess(test)
        self.sink.handle(TestPassed(test_id=test.id(), duration_ms=self._duration_ms(test)))

    def addFailure(self, test, err) -> None:
        super().addFailure(test, err)
        self._report_failure(test, err)

    def addError(self, test, err) -> None:
        super().addError(test, err)
        self._report_failure(test, err)

    def addSkip(self, test, reason) -> None:
        super().addSkip(test, reason)
        self._started_at.pop(test.id(), None)
        self.sink.handle(
            TestSkipped(test_id=test.id(), reason=reason, display_name=self._inline_name(test))
        )

    def addExpectedFailure(self, test, err) -> None:
        super().addExpectedFailure(test, err)
        self._started_at.pop(test.id(), None)
        self.sink.handle(TestSkipped(test_id=test.id(), reason="expected failure"))

    def addUnexpectedSuccess(self, test) -> None:
        super().addUnexpectedSuccess(test)
        self.sink.handle(
            TestFailed(
                test_id=test.id(),
                message="unexpected success",
                duration_ms=self._duration_ms(test),
            )
        )

    def addSubTest(self, test, subtest, err) -> None:
        super().addSubTest(test, subtest, err)
        if err is None:
            return
        self.sink.handle(
            TestFailed(
                test_id=subtest.id(),
                message=_exception_message(err),
                stack_trace=self._exc_info_to_string(err, test),
                display_name=self._inline_name(subtest),
            )
        )

    def _report_failure(self, test, err) -> None:
        self.sink.handle(
            TestFailed(
                test_id=test.id(),
                message=_exception_message(err),
                stack_trace=self._exc_info_to_string(err, test),
                display_name=self._inline_name(test),
                duration_ms=self._duration_ms(test),
            )
        )


def _iter_tests(suite):
    for test in suite:
        if isinstance(test, unittest.TestSuite):
            yield from _iter_tests(test)
        else:
            yield test


class UnittestEngine(TestEngine):
    """Runs TestCase classes defined in a script with unittest."""

    name = "unittest"

    def build_suite(self, module: ModuleType, keyword: Optional[str] = None) -> unittest.TestSuite:
        loader = unittest.TestLoader()
        if keyword:
            loader.testNamePatterns = [f"*{keyword}*"]
        return loader.loadTestsFromModule(module)

    def run(self, script: Path, sink: EventSink, keyword: Optional[str] = None) -> None:
        with script_imports(script):
            try:
                module = load_script_module(script)
            except Exception as e:
                self.report_collection_error(
                    sink, script, _exception_message((type(e), e, None)), traceback.format_exc()
                )
                return

            suite = self.build_suite(module, keyword)
            result = SinkTestResult(sink)
            suite.run(result)

    def discover(self, script: Path, keyword: Optional[str] = None) -> DiscoveryResult:
        with script_imports(script):
            try:
                module = load_script_module(script)
            except Exception as e:
                return DiscoveryResult(error=_exception_message((type(e), e, None)))
            suite = self.build_suite(module, keyword)

        tests = []
        for test in _iter_tests(suite):
            # Loader failures surface as synthetic _FailedTest cases
            if type(test).__name__ == "_FailedTest":
                return DiscoveryResult(tests=tests, error=str(test))
            tests.append(
                DiscoveredTest(
                    test_id=test.id(),
                    display_name=display_name_from_test_id(test.id()),
                    file_path=str(script),
                )
            )
        return DiscoveryResult(tests=tests)

