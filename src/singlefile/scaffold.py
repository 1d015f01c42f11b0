"""Scaffolding for new single-file test scripts using Jinja2 templates."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

SCAFFOLD_ENGINES = ("pytest", "unittest")


def _class_name(stem: str) -> str:
    words = [w for w in stem.replace("-", "_").split("_") if w and w.lower() != "test"]
    return "".join(w[:1].upper() + w[1:] for w in words) or "Example"


class ScriptScaffolder:
    """Renders new test scripts from the bundled templates."""

    def __init__(self):
        template_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, path: Path | str, engine: str = "pytest") -> str:
        """Render the script text for ``path``."""
        engine = engine.lower()
        if engine not in SCAFFOLD_ENGINES:
            raise ValueError(f"Engine must be one of: {', '.join(SCAFFOLD_ENGINES)}")

        path = Path(path)
        template = self.env.get_template(f"{engine}_script.py.j2")
        return template.render(
            name=path.stem,
            filename=path.name,
            class_name=_class_name(path.stem),
        )

    def create(self, path: Path | str, engine: str = "pytest", force: bool = False) -> Path:
        """Write a new test script.

        Raises:
            FileExistsError: If the file exists and force is not set
        """
        path = Path(path)
        if path.suffix != ".py":
            path = path.with_name(path.name + ".py")
        if path.exists() and not force:
            raise FileExistsError(f"File already exists: {path}")

        content = self.render(path, engine)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
