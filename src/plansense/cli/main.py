"""
PlanSense CLI - SQL Server execution plan analyzer.

Reads a plan in PlanSense's JSON form, runs the diagnostic rules and prints
the warnings.

Usage:
    plansense analyze plan.json
    plansense analyze --format json --fail-on critical plan.json
    plansense rules
    plansense --help

Exit codes:
    0  analysis ran; no warning reached the --fail-on level
    1  the plan or the configuration could not be loaded
    2  a warning at or above the --fail-on level was found
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from plansense import __version__
from plansense.analyzer import Analyzer
from plansense.config import get_config
from plansense.exceptions import ConfigurationError, ParseError
from plansense.output.renderers import (
    SEVERITY_ORDER,
    OutputFormat,
    collect_warnings,
    format_location,
    max_severity,
    message_lines,
    render,
)
from plansense.parser import PlanWarningSeverity, load_plan


class FailOn(str, Enum):
    """Lowest severity that makes `analyze` exit non-zero."""
    none = "none"
    warning = "warning"
    critical = "critical"


FAIL_ON_SEVERITY = {
    FailOn.warning: PlanWarningSeverity.WARNING,
    FailOn.critical: PlanWarningSeverity.CRITICAL,
}

EXIT_LOAD_ERROR = 1
EXIT_THRESHOLD = 2


app = typer.Typer(
    name="plansense",
    help="SQL Server execution plan analyzer",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"PlanSense version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """PlanSense - SQL Server execution plan analyzer."""
    pass


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def _severity_style(severity: PlanWarningSeverity) -> str:
    if severity == PlanWarningSeverity.CRITICAL:
        return "red bold"
    elif severity == PlanWarningSeverity.WARNING:
        return "yellow"
    return "blue"


@app.command()
def analyze(
    plan_file: Annotated[
        Path,
        typer.Argument(
            help="Path to the plan file (PlanSense JSON format)",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format",
        ),
    ] = OutputFormat.TEXT,
    exclude_rule: Annotated[
        Optional[list[str]],
        typer.Option(
            "--exclude-rule",
            "-x",
            help="Rule ID to skip (repeatable)",
        ),
    ] = None,
    fail_on: Annotated[
        FailOn,
        typer.Option(
            "--fail-on",
            help="Exit with code 2 when a warning at this severity or above is found",
        ),
    ] = FailOn.none,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Log rule engine activity to stderr",
        ),
    ] = False,
) -> None:
    """
    Analyze an execution plan for performance issues.

    Examples:
        $ plansense analyze plan.json
        $ plansense analyze --exclude-rule SCALAR_UDF --format markdown plan.json
        $ plansense analyze --fail-on critical plan.json || echo "blocked"
    """
    _configure_logging(verbose)

    try:
        plan = load_plan(plan_file)
        analyzer = Analyzer(
            exclude_rules=set(exclude_rule) if exclude_rule else None,
            config=get_config(),
        )
        result = analyzer.run(plan)
    except ParseError as e:
        error_console.print(f"[red]Error:[/red] {escape(e.message)}")
        if e.detail:
            error_console.print(f"\n[dim]{escape(e.detail)}[/dim]")
        raise typer.Exit(code=EXIT_LOAD_ERROR)
    except ConfigurationError as e:
        error_console.print(f"[red]Configuration error:[/red] {escape(e.message)}")
        raise typer.Exit(code=EXIT_LOAD_ERROR)

    warnings = collect_warnings(plan)

    if output_format == OutputFormat.JSON:
        console.print_json(render(plan, result, OutputFormat.JSON))
    elif output_format == OutputFormat.MARKDOWN:
        console.print(render(plan, result, OutputFormat.MARKDOWN), markup=False, highlight=False, soft_wrap=True)
    elif not warnings:
        console.print(Panel(
            "[green]No performance issues found![/green]\n\n"
            f"Analyzed {result.statement_count} statement(s), {result.node_count} operator(s).",
            title="PlanSense",
            border_style="green",
        ))
    else:
        console.print(f"[bold]Found {len(warnings)} issue(s):[/bold]\n")
        for located in warnings:
            style = _severity_style(located.severity)
            console.print(
                f"[{style}][{located.severity.value.upper()}][/{style}] "
                f"{escape(located.warning.warning_type)}"
            )
            console.print(f"   [dim]{escape(format_location(located))}[/dim]", soft_wrap=True)
            for line in message_lines(located):
                console.print(f"   {escape(line)}", highlight=False, soft_wrap=True)
            console.print()

        console.print(
            f"[dim]Analyzed {result.statement_count} statement(s), "
            f"{result.node_count} operator(s) with {len(analyzer.rules)} rule(s)[/dim]"
        )

    if result.has_errors and output_format != OutputFormat.JSON:
        for error in result.errors:
            error_console.print(f"[yellow]Rule failure:[/yellow] {escape(str(error))}")

    threshold = FAIL_ON_SEVERITY.get(fail_on)
    worst = max_severity(warnings)
    if threshold is not None and worst is not None:
        if SEVERITY_ORDER[worst] >= SEVERITY_ORDER[threshold]:
            raise typer.Exit(code=EXIT_THRESHOLD)


@app.command()
def rules() -> None:
    """
    List available diagnostic rules.

    Shows rule IDs, pipeline phase and order, default severity and description.
    """
    from plansense.analyzer.registry import get_registry

    registry = get_registry()

    table = Table(title="Diagnostic Rules")
    table.add_column("#", justify="right")
    table.add_column("Rule ID", style="cyan", no_wrap=True)
    table.add_column("Phase")
    table.add_column("Severity")
    table.add_column("Description")

    for i, rule_cls in enumerate(registry.all(), 1):
        style = _severity_style(rule_cls.severity)
        severity = rule_cls.severity.value.upper()
        table.add_row(
            str(i),
            rule_cls.rule_id,
            rule_cls.phase.name.lower(),
            f"[{style}]{severity}[/{style}]",
            rule_cls.description,
        )

    console.print(table)


if __name__ == "__main__":
    app()
