"""Show command - render the tree a property file produces."""

import sys
from pathlib import Path

import click
from rich.console import Console

from hierlog.config.configurator import configure, release_context
from hierlog.config.directives import Directive
from hierlog.core.errors import ConfigurationError
from hierlog.core.tree import get_tree


def logger_segments(name: str) -> list[str]:
    """Split a dotted logger name given on the command line ("" or "ROOT" = root)."""
    if name in ("", "ROOT"):
        return []
    segments = name.split(".")
    if any(not segment for segment in segments):
        raise click.BadParameter(f"invalid logger name {name!r}", param_hint="--logger")
    return segments


@click.command("show")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--logger",
    "-l",
    "logger_name",
    default="",
    help="Logger the file is applied to (default: root)",
)
def show_command(path: Path, logger_name: str):
    """
    Apply a property file to a scratch context and print the resulting tree.

    Nothing is written: appenders open their files on the first event only.

    Example:
        hierlog show logging.properties
        hierlog show app.yaml --logger app
    """
    console = Console()
    segments = logger_segments(logger_name)

    tree = get_tree()
    ctx = tree.new_context()
    try:
        configure(segments, Directive.PROPERTIES, path, ctx=ctx, tree=tree)
        diagram = configure(segments, ctx=ctx, tree=tree)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    finally:
        release_context(ctx, tree)

    console.print(diagram, markup=False, highlight=False, end="")
