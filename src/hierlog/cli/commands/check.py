"""Check command - validate a property file and summarize it."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from hierlog.config.properties import PropertyConfiguration, load_properties
from hierlog.core.errors import PropertyParseError


@click.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check_command(path: Path):
    """
    Validate a property file.

    Prints one row per configured logger with its level, additivity and
    appenders. Exits with status 1 if the file is invalid.

    Example:
        hierlog check logging.properties
    """
    console = Console()

    try:
        config = load_properties(path)
    except PropertyParseError as e:
        console.print(f"[red]✗ Invalid: {e}[/red]")
        sys.exit(1)

    console.print(f"\n[green]✓ {path} is valid[/green]")
    console.print(f"[dim]{len(config.loggers)} logger(s), {len(config.appenders)} appender(s)[/dim]\n")
    if config.loggers:
        console.print(create_logger_table(config))


def create_logger_table(config: PropertyConfiguration) -> Table:
    table = Table(title="Loggers", show_header=True, header_style="bold cyan")
    table.add_column("Logger", style="green", no_wrap=True)
    table.add_column("Level", style="yellow")
    table.add_column("Additive", style="magenta")
    table.add_column("Appenders", style="white")

    for logger in sorted(config.loggers, key=lambda spec: spec.name):
        appenders = ", ".join(f"{name} ({config.appenders[name].kind})" for name in logger.appenders)
        table.add_row(
            logger.name or "(target)",
            logger.level.name if logger.level is not None else "-",
            "-" if logger.additive is None else ("yes" if logger.additive else "no"),
            appenders or "-",
        )
    return table
