"""Root CLI group for performkit with global flags and command registration."""

from __future__ import annotations

import click

from performkit import __version__
from performkit.commands import register_commands
from performkit.commands._context import AppContext
from performkit.config.settings import PerformkitSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="performkit")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """performkit — inspect and run service objects."""
    settings = PerformkitSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
