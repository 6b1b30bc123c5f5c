"""Subcommand modules for performkit.

Provides register_commands() which uses deferred imports to keep
``performkit --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all commands on the root CLI group."""
    from performkit.commands.describe import describe
    from performkit.commands.run import run

    cli.add_command(describe)
    cli.add_command(run)
