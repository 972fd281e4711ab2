"""Output formatting for version results.

Provides text and JSON rendering of a calculated version, plus single
variable lookup for scripting.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from versionist.calculation.models import VersionResult


console = Console()


class UnknownVariableError(KeyError):
    """Requested variable is not part of the version result."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown variable '{self.name}'. Available: {', '.join(self.available)}"


class ResultFormatter:
    """Formatter for version calculation results."""

    def __init__(self, result: VersionResult, output: Console | None = None) -> None:
        self.result = result
        self.console = output or console

    def to_json(self) -> str:
        """Convert the result's variables to a JSON string."""
        return json.dumps(self.result.to_variables(), indent=2)

    def variable(self, name: str) -> str:
        """Look up one variable, ignoring case.

        Raises:
            UnknownVariableError: If no variable has that name.
        """
        variables = self.result.to_variables()
        for key, value in variables.items():
            if key.lower() == name.lower():
                return value
        raise UnknownVariableError(name, sorted(variables))

    def print_json(self) -> None:
        """Output the result as JSON."""
        self.console.print_json(self.to_json())

    def print_variable(self, name: str) -> None:
        """Output a single variable's raw value."""
        self.console.print(self.variable(name), markup=False, highlight=False)

    def to_text(self, verbose: bool = False) -> None:
        """Output the result as formatted text."""
        result = self.result
        self.console.print()
        self.console.print(f"[bold blue]{result.full_semver}[/bold blue]")
        self.console.print()

        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("Name", style="dim")
        table.add_column("Value")
        table.add_row("Branch", result.branch_name)
        table.add_row("Commit", f"{result.short_sha} ({result.commit_date.date().isoformat()})")
        table.add_row("Mode", result.versioning_mode.value)
        table.add_row("Base version from", result.base_version_strategy)
        table.add_row("Version source", result.version_source_sha or "(none)")
        table.add_row("Commits since source", str(result.commits_since_version_source))
        self.console.print(table)

        if verbose and result.increment_reasons:
            self.console.print()
            self.console.print("[bold]Increment trail:[/bold]")
            for reason in result.increment_reasons:
                self.console.print(f"  - {reason}", markup=False, highlight=False)
        self.console.print()


def show_result(
    result: VersionResult,
    format: str = "text",
    variable: str | None = None,
    verbose: bool = False,
    output: Console | None = None,
) -> None:
    """Render a result in the requested format.

    Args:
        result: Calculated version.
        format: Either 'text' or 'json'.
        variable: Print only this variable's value.
        verbose: Include the increment trail in text output.
        output: Console to write to (defaults to the module console).
    """
    formatter = ResultFormatter(result, output)
    if variable is not None:
        formatter.print_variable(variable)
    elif format == "json":
        formatter.print_json()
    else:
        formatter.to_text(verbose=verbose)


__all__ = ["ResultFormatter", "UnknownVariableError", "show_result"]
