"""describe — show a service type's schema and callback chains."""

from __future__ import annotations

import click

from performkit.commands._context import AppContext, load_service_class
from performkit.output.formatters import format_definition


@click.command()
@click.argument("target")
@click.pass_obj
def describe(app: AppContext, target: str) -> None:
    """Describe the service TARGET, given as MODULE:CLASS."""
    service_cls = load_service_class(target)
    click.echo(format_definition(service_cls, json_output=app.settings.json_output))
