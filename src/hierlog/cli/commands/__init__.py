"""Commands __init__ - exports all commands."""

from hierlog.cli.commands.check import check_command
from hierlog.cli.commands.show import show_command

__all__ = ["check_command", "show_command"]
