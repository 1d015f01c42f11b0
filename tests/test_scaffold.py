"""Tests for script scaffolding."""

import pytest

from singlefile.core.engines import PytestEngine, UnittestEngine, detect_engine
from singlefile.core.events import TestFailed, TestPassed, TestSkipped
from singlefile.scaffold import ScriptScaffolder


class TestScriptScaffolder:
    """Tests for ScriptScaffolder."""

    def test_render_pytest(self, tmp_path):
        content = ScriptScaffolder().render(tmp_path / "test_money.py", engine="pytest")

        assert "Run with: python test_money.py" in content
        assert "import pytest" in content
        assert 'raise SystemExit(run_tests(engine="pytest"))' in content

    def test_render_unittest_class_name(self, tmp_path):
        content = ScriptScaffolder().render(tmp_path / "money-rules.py", engine="unittest")

        assert "class MoneyRulesTests(unittest.TestCase):" in content
        assert 'run_tests(engine="unittest")' in content

    def test_render_rejects_unknown_engine(self, tmp_path):
        with pytest.raises(ValueError):
            ScriptScaffolder().render(tmp_path / "x.py", engine="nose")

    def test_create_adds_suffix(self, tmp_path):
        path = ScriptScaffolder().create(tmp_path / "checks")

        assert path == tmp_path / "checks.py"
        assert path.exists()

    def test_create_refuses_overwrite(self, tmp_path):
        path = tmp_path / "checks.py"
        path.write_text("keep me")

        with pytest.raises(FileExistsError):
            ScriptScaffolder().create(path)
        assert path.read_text() == "keep me"

    def test_create_force_overwrites(self, tmp_path):
        path = tmp_path / "checks.py"
        path.write_text("old")

        ScriptScaffolder().create(path, force=True)

        assert "run_tests" in path.read_text()

    def test_unittest_script_is_detected_and_runs(self, tmp_path, recording_sink):
        path = ScriptScaffolder().create(tmp_path / "scaffolded_unittest.py", engine="unittest")

        assert detect_engine(path) == "unittest"
        UnittestEngine().run(path, recording_sink)

        assert len(recording_sink.of_type(TestPassed)) == 2
        assert len(recording_sink.of_type(TestSkipped)) == 1
        assert not recording_sink.of_type(TestFailed)

    def test_pytest_script_runs(self, tmp_path, recording_sink):
        path = ScriptScaffolder().create(tmp_path / "scaffolded_pytest.py", engine="pytest")

        PytestEngine().run(path, recording_sink)

        assert len(recording_sink.of_type(TestPassed)) == 3
        assert len(recording_sink.of_type(TestSkipped)) == 1
        assert not recording_sink.of_type(TestFailed)
