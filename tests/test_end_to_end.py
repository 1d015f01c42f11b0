"""Tests that run single-file scripts as real programs."""

import os
import subprocess
import sys
import textwrap


PYTEST_SCRIPT = """
    from singlefile import run_tests


    def test_adds():
        assert 1 + 1 == 2


    def test_{name}():
        assert {outcome}


    if __name__ == "__main__":
        raise SystemExit(run_tests())
"""

UNITTEST_SCRIPT = """
    import unittest

    from singlefile import run_tests


    class Checks(unittest.TestCase):
        def test_adds(self):
            self.assertEqual(1 + 1, 2)

        def test_{name}(self):
            self.assertTrue({outcome})


    if __name__ == "__main__":
        raise SystemExit(run_tests())
"""


def _run_script(tmp_path, name, source):
    script = tmp_path / name
    script.write_text(textwrap.dedent(source))
    env = {key: value for key, value in os.environ.items() if key != "FORCE_COLOR"}
    env["NO_COLOR"] = "1"
    return subprocess.run(
        [sys.executable, str(script)],
        capture_output=True,
        text=True,
        cwd=tmp_path,
        env=env,
        timeout=120,
    )


class TestScriptAsProgram:
    """Tests for scripts that end with run_tests()."""

    def test_pytest_script_passing(self, tmp_path):
        result = _run_script(
            tmp_path, "e2e_pytest_pass.py", PYTEST_SCRIPT.format(name="also_adds", outcome="True")
        )

        assert result.returncode == 0, result.stderr
        lines = result.stdout.splitlines()
        assert lines[0] == "Discovering and running tests..."
        assert "  [PASS] test_adds" in lines
        assert "  [PASS] test_also_adds" in lines
        assert "Total tests: 2" in lines

    def test_pytest_script_failing(self, tmp_path):
        result = _run_script(
            tmp_path, "e2e_pytest_fail.py", PYTEST_SCRIPT.format(name="broken", outcome="False")
        )

        assert result.returncode == 1, result.stderr
        lines = result.stdout.splitlines()
        assert "  [PASS] test_adds" in lines
        assert "  [FAIL] test_broken" in lines
        assert "  Failed: 1" in lines

    def test_unittest_script_passing(self, tmp_path):
        result = _run_script(
            tmp_path, "e2e_unittest_pass.py", UNITTEST_SCRIPT.format(name="also_adds", outcome="True")
        )

        assert result.returncode == 0, result.stderr
        lines = result.stdout.splitlines()
        assert "  [PASS] Checks.test_adds" in lines
        assert "  [PASS] Checks.test_also_adds" in lines
        assert "Total tests: 2" in lines

    def test_unittest_script_failing(self, tmp_path):
        result = _run_script(
            tmp_path, "e2e_unittest_fail.py", UNITTEST_SCRIPT.format(name="broken", outcome="False")
        )

        assert result.returncode == 1, result.stderr
        lines = result.stdout.splitlines()
        assert "  [PASS] Checks.test_adds" in lines
        assert "  [FAIL] Checks.test_broken" in lines
        assert "  Failed: 1" in lines
