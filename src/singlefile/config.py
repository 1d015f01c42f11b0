"""Configuration management for SingleFile."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

ENGINE_NAMES = ("auto", "pytest", "unittest")
CONFIG_NAMES = ["singlefile.json", ".singlefile.json"]


class OutputConfig(BaseModel):
    """Console output configuration."""

    color: bool = Field(default=True, description="Color the PASS/FAIL/SKIP tags")
    stack_traces: bool = Field(default=True, description="Print stack traces under failures")


class PytestConfig(BaseModel):
    """Options for the pytest engine."""

    args: list[str] = Field(default_factory=list, description="Extra arguments passed to pytest")


class ReportConfig(BaseModel):
    """Report output configuration."""

    json_path: Optional[str] = Field(
        default=None, description="Write a JSON summary of the run to this path"
    )


class RunnerConfig(BaseModel):
    """Main configuration for SingleFile."""

    engine: str = Field(default="auto", description="Test engine (auto, pytest, unittest)")
    output: OutputConfig = Field(default_factory=OutputConfig)
    pytest: PytestConfig = Field(default_factory=PytestConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    @field_validator("engine")
    @classmethod
    def validate_engine(cls, v: str) -> str:
        if v.lower() not in ENGINE_NAMES:
            raise ValueError(f"Engine must be one of: {', '.join(ENGINE_NAMES)}")
        return v.lower()

    @classmethod
    def from_file(cls, path: Path | str) -> "RunnerConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "RunnerConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        current = start_dir.resolve()
        while True:
            for name in CONFIG_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create singlefile.json or run 'singlefile init'"
        )

    @classmethod
    def load_or_default(cls, start_dir: Path | str | None = None) -> "RunnerConfig":
        """Load the nearest configuration file, falling back to defaults."""
        try:
            return cls.find_and_load(start_dir)
        except FileNotFoundError:
            return get_default_config()

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def get_report_path(self, base_dir: Path | str | None = None) -> Optional[Path]:
        """Get the absolute JSON report path, if one is configured."""
        if not self.report.json_path:
            return None
        if base_dir is None:
            base_dir = Path.cwd()
        return (Path(base_dir) / self.report.json_path).resolve()


def get_default_config() -> RunnerConfig:
    """Return a default configuration."""
    return RunnerConfig()


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.pytest.args = ["--strict-markers"]
    config.report.json_path = "reports/singlefile.json"
    config.to_file(output_path)
    return output_path
