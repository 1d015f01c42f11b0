"""Command-line interface for SingleFile."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from singlefile import __version__
from singlefile.config import ENGINE_NAMES, RunnerConfig, create_example_config
from singlefile.errors import SingleFileError


console = Console()


def print_banner() -> None:
    """Print the SingleFile banner."""
    console.print(
        Panel.fit(
            "[bold blue]SingleFile[/bold blue] - in-process test runner for single-file scripts",
            subtitle=f"v{__version__}",
        )
    )


def _load_config(ctx: click.Context, script: Optional[Path] = None) -> RunnerConfig:
    """Load the --config file, or the nearest one to the script, or defaults."""
    config_path = ctx.obj.get("config_path")
    try:
        if config_path:
            return RunnerConfig.from_file(config_path)
        start_dir = script.parent if script is not None else None
        return RunnerConfig.load_or_default(start_dir)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="singlefile")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: nearest singlefile.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """SingleFile - run the tests that live inside a single Python file.

    Drives pytest or unittest in-process and prints one line per test.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config


@main.command()
@click.argument("script", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--engine",
    "-e",
    type=click.Choice(ENGINE_NAMES, case_sensitive=False),
    help="Test engine to use (default: from config, else auto)",
)
@click.option("--keyword", "-k", help="Only run tests whose name matches")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--no-stack-traces", is_flag=True, help="Hide stack traces under failures")
@click.option(
    "--json-report",
    type=click.Path(dir_okay=False),
    help="Write a JSON summary of the run to this path",
)
@click.pass_context
def run(
    ctx: click.Context,
    script: Path,
    engine: Optional[str],
    keyword: Optional[str],
    no_color: bool,
    no_stack_traces: bool,
    json_report: Optional[str],
) -> None:
    """Run the tests in SCRIPT."""
    from singlefile.core.runner import TestRunner

    verbose = ctx.obj.get("verbose", False)
    config = _load_config(ctx, script)

    if engine:
        config.engine = engine.lower()
    if no_color:
        config.output.color = False
    if no_stack_traces:
        config.output.stack_traces = False
    if json_report:
        config.report.json_path = str(Path(json_report).resolve())

    run_console = console if config.output.color else Console(no_color=True)
    runner = TestRunner(config, console=run_console, verbose=verbose)

    try:
        summary = runner.run(script, keyword=keyword)
    except SingleFileError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    sys.exit(summary.exit_code)


@main.command("list")
@click.argument("script", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--engine",
    "-e",
    type=click.Choice(ENGINE_NAMES, case_sensitive=False),
    help="Test engine to use (default: from config, else auto)",
)
@click.option("--keyword", "-k", help="Only list tests whose name matches")
@click.pass_context
def list_tests(ctx: click.Context, script: Path, engine: Optional[str], keyword: Optional[str]) -> None:
    """List the tests in SCRIPT without running them."""
    from singlefile.core.runner import TestRunner

    print_banner()

    verbose = ctx.obj.get("verbose", False)
    config = _load_config(ctx, script)
    if engine:
        config.engine = engine.lower()

    runner = TestRunner(config, console=console, verbose=verbose)

    try:
        result = runner.discover(script, keyword=keyword)
    except SingleFileError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if not result.success:
        console.print(f"[red]Discovery failed:[/red] {result.error}")
        sys.exit(1)

    if not result.tests:
        console.print("[yellow]No tests found[/yellow]")
        return

    table = Table(title=f"Tests in {script.name}")
    table.add_column("Test", style="cyan", no_wrap=True)
    table.add_column("Line", justify="right", style="dim")
    table.add_column("ID", style="dim", overflow="fold")

    for test in result.tests:
        table.add_row(
            test.display_name,
            str(test.line_number) if test.line_number else "-",
            test.test_id,
        )

    console.print(table)
    console.print(f"\n{result.total_count} tests")


@main.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--engine",
    "-e",
    type=click.Choice(["pytest", "unittest"], case_sensitive=False),
    default="pytest",
    help="Engine the new script is written for",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
def new(path: Path, engine: str, force: bool) -> None:
    """Create a new single-file test script at PATH."""
    from singlefile.scaffold import ScriptScaffolder

    print_banner()

    try:
        created = ScriptScaffolder().create(path, engine=engine, force=force)
    except FileExistsError as e:
        console.print(f"[yellow]{e}[/yellow]")
        console.print("Use --force to overwrite")
        sys.exit(1)

    console.print(f"[green]Created test script:[/green] {created}")
    console.print(f"\nRun it with: [bold]python {created.name}[/bold]")


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="singlefile.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Initialize a new SingleFile configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(
            f"[yellow]Configuration file already exists:[/yellow] {output_path}"
        )
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        create_example_config(output_path)
    except OSError as e:
        console.print(f"[red]Error creating configuration:[/red] {e}")
        sys.exit(1)

    console.print(f"[green]Created configuration file:[/green] {output_path}")


if __name__ == "__main__":
    main()
