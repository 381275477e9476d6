"""hierlog CLI main entry point."""

import click

from hierlog import __version__
from hierlog.cli.commands import check_command, show_command


@click.group()
@click.version_option(version=__version__)
def main():
    """hierlog - Hierarchical logging configuration tools"""
    pass


# Register commands
main.add_command(show_command)
main.add_command(check_command)


if __name__ == "__main__":
    main()
