#!/usr/bin/env python3
"""tleparser command-line interface.

Usage::

    tleparser parse iss.tle
    tleparser parse --mode permissive --format json iss.tle
    cat iss.tle | tleparser validate -
    tleparser inspect --max-recovery 3 damaged.tle
    tleparser checksum "1 25544U 98067A   20300.83097691  .00001534  00000-0  35580-4 0  9996"
"""
from __future__ import annotations

import sys
import json
import logging
from typing import Iterable

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich import box

from .checksum import CHECKSUM_COLUMN, TLE_LINE_LENGTH, calculate_checksum
from .errors import Severity, TLEFormatError, TLEIssue, TLEValidationError
from .parser import Mode, ParsedTLE, ParseOptions, ValidateOptions, parse_tle, validate_tle
from .schema import FIELDS_BY_NAME
from .state_machine import ParseResult, StateMachineOptions, TLEStateMachineParser

console = Console()

MODE_CHOICE = click.Choice([m.value for m in Mode])

_SEVERITY_STYLE = {
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
    Severity.CRITICAL: "bold red",
}


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """tleparser: parse and validate NORAD Two-Line Element sets."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s — %(message)s")


@main.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--mode", "-m", default="strict", type=MODE_CHOICE, help="Validation policy")
@click.option("--no-validate", is_flag=True, help="Extract fields without validating")
@click.option("--format", "-f", "fmt", default="table",
              type=click.Choice(["table", "json", "tle"]), help="Output format")
@click.option("--no-warnings", is_flag=True, help="Do not report validation warnings")
@click.option("--no-comments", is_flag=True, help="Do not report comment lines")
def parse(
    source,
    mode: str,
    no_validate: bool,
    fmt: str,
    no_warnings: bool,
    no_comments: bool,
):
    """Parse a TLE from SOURCE (file or '-' for stdin)."""
    options = ParseOptions(
        validate=not no_validate,
        include_warnings=not no_warnings,
        include_comments=not no_comments,
        mode=mode,
    )

    try:
        tle = parse_tle(source.read(), options)
    except TLEValidationError as exc:
        _display_issues(exc.errors, title="Validation Errors")
        if not no_warnings:
            _display_issues(exc.warnings, title="Warnings")
        sys.exit(1)
    except TLEFormatError as exc:
        console.print(f"[red]Error ({exc.code.value}): {escape(str(exc))}[/red]")
        sys.exit(1)

    if fmt == "json":
        click.echo(json.dumps(tle.to_dict(), indent=2, default=str))
    elif fmt == "tle":
        if tle.satellite_name:
            click.echo(tle.satellite_name)
        for line in tle.to_lines():
            click.echo(line)
    else:
        _display_tle(tle)
        if tle.warnings:
            _display_issues(tle.warnings, title="Warnings")


@main.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--mode", "-m", default="strict", type=MODE_CHOICE, help="Validation policy")
@click.option("--lenient-checksums", is_flag=True, help="Report checksum failures as warnings")
@click.option("--no-ranges", is_flag=True, help="Skip numeric range checks")
def validate(source, mode: str, lenient_checksums: bool, no_ranges: bool):
    """Validate a TLE from SOURCE and report every finding."""
    options = ValidateOptions(
        strict_checksums=not lenient_checksums,
        validate_ranges=not no_ranges,
        mode=mode,
    )

    try:
        result = validate_tle(source.read(), options)
    except TLEFormatError as exc:
        console.print(f"[red]Error ({exc.code.value}): {escape(str(exc))}[/red]")
        sys.exit(1)

    status = "[bold green]VALID[/bold green]" if result.is_valid else "[bold red]INVALID[/bold red]"
    console.print(
        Panel(
            f"{status}\n"
            f"Mode: {options.mode.value}\n"
            f"Errors: {len(result.errors)}\n"
            f"Warnings: {len(result.warnings)}",
            title="Validation",
            box=box.ROUNDED,
        )
    )
    _display_issues(result.errors, title="Errors")
    _display_issues(result.warnings, title="Warnings")

    if not result.is_valid:
        sys.exit(1)


@main.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--no-recovery", is_flag=True, help="Abort on the first problem")
@click.option("--strict", is_flag=True, help="Treat any error as fatal")
@click.option("--max-recovery", default=StateMachineOptions.max_recovery_attempts,
              type=click.IntRange(min=0), help="Recovery attempts per parse")
def inspect(source, no_recovery: bool, strict: bool, max_recovery: int):
    """Run the recovering state-machine parser and show its trace."""
    options = StateMachineOptions(
        attempt_recovery=not no_recovery,
        max_recovery_attempts=max_recovery,
        strict_mode=strict,
    )
    result = TLEStateMachineParser(options).parse(source.read())

    _display_parse_result(result)

    if not result.success:
        sys.exit(1)


@main.command()
@click.argument("line")
def checksum(line: str):
    """Compute the checksum digit of a TLE data LINE.

    LINE may be the full 69-column line or the first 68 columns.
    """
    line = line.rstrip("\r\n")
    if len(line) == CHECKSUM_COLUMN:
        digit = calculate_checksum(line + "0")
    else:
        digit = calculate_checksum(line)
    console.print(str(digit))

    if len(line) == TLE_LINE_LENGTH and line[CHECKSUM_COLUMN] != str(digit):
        console.print(
            f"[yellow]Line ends in '{escape(line[CHECKSUM_COLUMN])}', "
            f"expected {digit}[/yellow]"
        )
    elif len(line) not in (CHECKSUM_COLUMN, TLE_LINE_LENGTH):
        console.print(
            f"[yellow]Line is {len(line)} characters; "
            f"TLE data lines are {TLE_LINE_LENGTH}[/yellow]"
        )


def _display_tle(tle: ParsedTLE):
    """Display a parsed TLE with rich formatting."""
    epoch = tle.epoch_datetime
    console.print(
        Panel(
            f"[bold]{escape(tle.satellite_name or 'UNKNOWN')}[/bold] "
            f"(NORAD {tle.satellite_number1})\n"
            f"International designator: "
            f"{tle.intl_designator_year}{tle.intl_designator_launch}{escape(tle.intl_designator_piece)}\n"
            f"Epoch: {f'{epoch:%Y-%m-%d %H:%M:%S} UTC' if epoch else 'invalid'}\n"
            f"Inclination: {tle.inclination}°\n"
            f"Mean motion: {tle.mean_motion} rev/day",
            title="Parsed TLE",
            box=box.ROUNDED,
        )
    )

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Line", justify="right")
    table.add_column("Columns", justify="right")
    table.add_column("Value", style="bold")

    for name, value in tle.fields().items():
        spec = FIELDS_BY_NAME[name]
        table.add_row(name, str(spec.line), f"{spec.start + 1}-{spec.end}", escape(value))

    console.print(table)

    for comment in tle.comments:
        console.print(f"[dim]{escape(comment)}[/dim]")


def _display_issues(issues: Iterable[TLEIssue], title: str):
    """Display errors or warnings as a rich table. Prints nothing when empty."""
    issues = list(issues)
    if not issues:
        return

    table = Table(title=title, box=box.SIMPLE_HEAVY, show_lines=True)
    table.add_column("Code", style="bold", no_wrap=True)
    table.add_column("Line", justify="right")
    table.add_column("Message")

    for issue in issues:
        color = _SEVERITY_STYLE[issue.severity]
        table.add_row(
            f"[{color}]{issue.code.value}[/{color}]",
            str(issue.line) if issue.line is not None else "",
            escape(issue.message),
        )

    console.print(table)


def _display_parse_result(result: ParseResult):
    """Display a state-machine parse result: summary, issues, recovery log, transitions."""
    status = "[bold green]SUCCESS[/bold green]" if result.success else "[bold red]FAILED[/bold red]"
    ctx = result.context
    console.print(
        Panel(
            f"{status}\n"
            f"Final state: {result.state.value}\n"
            f"Lines: {ctx['line_count']} (name line: {'yes' if ctx['has_name'] else 'no'})\n"
            f"Recovery attempts: {ctx['recovery_attempts']}\n"
            f"Errors: {len(result.errors)}  Warnings: {len(result.warnings)}",
            title="State-Machine Parse",
            box=box.ROUNDED,
        )
    )

    issues = result.errors + result.warnings
    if issues:
        table = Table(title="Issues", box=box.SIMPLE_HEAVY, show_lines=True)
        table.add_column("State", style="cyan", no_wrap=True)
        table.add_column("Code", style="bold", no_wrap=True)
        table.add_column("Message")
        for issue in issues:
            color = _SEVERITY_STYLE[issue.severity]
            table.add_row(
                issue.state or "",
                f"[{color}]{issue.code.value}[/{color}]",
                escape(issue.message),
            )
        console.print(table)

    if result.recovery_actions:
        table = Table(title="Recovery Actions", box=box.SIMPLE_HEAVY)
        table.add_column("#", justify="right")
        table.add_column("Action", style="bold", no_wrap=True)
        table.add_column("State", style="cyan", no_wrap=True)
        table.add_column("Description")
        for record in result.recovery_actions:
            table.add_row(
                str(record.sequence + 1),
                record.action.value,
                record.state.value,
                escape(record.description),
            )
        console.print(table)

    for t in result.transitions:
        reason = f"  [dim]{escape(t.reason)}[/dim]" if t.reason else ""
        console.print(f"{t.from_state.value} → {t.to_state.value}{reason}")

    if result.data:
        table = Table(title="Extracted Fields", box=box.SIMPLE_HEAVY)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value", style="bold")
        for name, value in result.data.items():
            table.add_row(name, escape(value))
        console.print(table)


if __name__ == "__main__":
    main()
