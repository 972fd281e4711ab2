"""Command-line interface for Versionist."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from versionist._version import __version__
from versionist.config import VersioningMode, get_config, load_config
from versionist.errors import ConfigurationAmbiguityError, VersionistError, get_friendly_message
from versionist.logging import configure_logging

# Load environment variables from .env file
load_dotenv()

console = Console()


def _fail(error: Exception) -> None:
    """Print an error and exit with status 1."""
    message = escape(get_friendly_message(error))
    if isinstance(error, ConfigurationAmbiguityError):
        console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)
    else:
        console.print(f"[red]Error:[/red] {message}", highlight=False)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="versionist")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output (errors and results only)")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Versionist - Calculate semantic versions from git history."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path), default=".")
@click.option("--branch", "-b", default=None, help="Branch whose policy applies (default: checked out)")
@click.option("--commit", "-c", default=None, help="Commit to version (default: branch tip or HEAD)")
@click.option("--pull-request", type=int, default=None, help="Version as a pull-request build")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: searched in the repository root)",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("--show-variable", default=None, help="Print only this variable (e.g. FullSemVer)")
@click.option("--stats", is_flag=True, help="Show calculation statistics")
@click.pass_context
def calculate(
    ctx: click.Context,
    path: Path,
    branch: str | None,
    commit: str | None,
    pull_request: int | None,
    config_file: Path | None,
    format: str,
    show_variable: str | None,
    stats: bool,
) -> None:
    """Calculate the version of a commit in the repository at PATH."""
    from versionist.calculation import VersionCalculator
    from versionist.git import GitRepository
    from versionist.output import UnknownVariableError, show_result

    verbose = ctx.obj.get("verbose", False)

    try:
        repository = GitRepository(path)
        cfg = load_config(config_file, directory=repository.root)
        calculator = VersionCalculator(repository, cfg)
        result = calculator.calculate(commit=commit, branch=branch, pull_request_number=pull_request)
    except VersionistError as e:
        _fail(e)
        return

    try:
        show_result(result, format=format, variable=show_variable, verbose=verbose, output=console)
    except UnknownVariableError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        sys.exit(1)

    if stats and calculator.last_statistics is not None:
        calculator.last_statistics.print_summary(console)


@main.group()
def config() -> None:
    """Manage Versionist configuration."""
    pass


@config.command(name="show")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: searched in the current directory)",
)
def config_show(config_file: Path | None) -> None:
    """Show current configuration."""
    from versionist.config import get_config_path

    try:
        if config_file is not None:
            load_config(config_file)
        cfg = get_config()
    except VersionistError as e:
        _fail(e)
        return

    console.print("[bold]Current Configuration[/bold]")
    console.print()

    active = get_config_path()
    if active:
        console.print(f"[dim]Config file:[/dim] {active}")
    else:
        console.print("[dim]Config file:[/dim] (none - using defaults)")
    console.print()

    console.print("[bold]Global:[/bold]")
    console.print(f"  Mode: {cfg.mode.value}")
    console.print(f"  Increment: {cfg.increment.value}")
    console.print(f"  Tag prefix: {cfg.tag_prefix}", markup=False)
    console.print(f"  Next version: {cfg.next_version or '(none)'}")
    console.print(f"  Commit message incrementing: {cfg.commit_message_incrementing.value}")
    console.print(f"  Ordered branches: {cfg.ordered_branches}")
    console.print()

    console.print("[bold]Branches:[/bold]")
    for branch in cfg.branches:
        mode = branch.mode.value if branch.mode is not None else "(inherit)"
        label = "{BranchName}" if branch.label is None else (branch.label or "(none)")
        flags = []
        if branch.is_mainline:
            flags.append("mainline")
        if branch.is_release_branch:
            flags.append("release")
        extra = f" [{', '.join(flags)}]" if flags else ""
        console.print(
            f"  {branch.name}: /{branch.regex}/ mode={mode} "
            f"increment={branch.increment.value} label={label}{extra}",
            markup=False,
            highlight=False,
        )


@config.command(name="path")
def config_path() -> None:
    """Show configuration file paths."""
    from versionist.config import find_config_file, get_config_paths

    console.print("[bold]Configuration paths (in priority order):[/bold]")
    config_file = find_config_file()

    for path in get_config_paths():
        if path.exists():
            if path == config_file:
                console.print(f"  [green]{path}[/green] (active)")
            else:
                console.print(f"  {path} (exists)")
        else:
            console.print(f"  [dim]{path}[/dim]")

    console.print()
    console.print("[bold]Other paths:[/bold]")
    console.print(f"  .env file: {Path.cwd() / '.env'}")


@config.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite existing config file")
@click.option(
    "--mode",
    type=click.Choice([mode.value for mode in VersioningMode], case_sensitive=False),
    default=None,
    help="Global versioning mode to write",
)
def config_init(force: bool, mode: str | None) -> None:
    """Create a default GitVersion.yml in the current directory."""
    from versionist.config import save_default_config

    config_path = Path.cwd() / "GitVersion.yml"

    if config_path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {config_path}")
        console.print("Use --force to overwrite.")
        sys.exit(1)

    save_default_config(config_path, VersioningMode(mode) if mode else None)
    console.print(f"[green]Created config file:[/green] {config_path}")
    console.print("Edit this file to customize your settings.")


@config.command(name="validate")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: searched in the current directory)",
)
def config_validate(config_file: Path | None) -> None:
    """Check the configuration for problems."""
    from versionist.validation import validate_config

    try:
        cfg = load_config(config_file)
    except VersionistError as e:
        _fail(e)
        return

    if not validate_config(cfg, console):
        sys.exit(1)


if __name__ == "__main__":
    main()
