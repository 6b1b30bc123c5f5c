"""run — construct, execute, and report a service from the command line."""

from __future__ import annotations

import click

from performkit.commands._context import AppContext, load_service_class


def _parse_arguments(pairs: tuple[str, ...]) -> dict[str, str]:
    arguments: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--arg")
        arguments[key] = value
    return arguments


@click.command()
@click.argument("target")
@click.option("--context", "context", default=None, help="Acting principal passed to the service.")
@click.option(
    "-a",
    "--arg",
    "pairs",
    multiple=True,
    help="Argument as KEY=VALUE (repeatable). Values are strings; the schema coerces them.",
)
@click.pass_obj
def run(app: AppContext, target: str, context: str | None, pairs: tuple[str, ...]) -> None:
    """Run the service TARGET, given as MODULE:CLASS, and print its result."""
    service_cls = load_service_class(target)
    arguments = _parse_arguments(pairs)
    try:
        service = service_cls(context, arguments, runtime=app.runtime)
        service.execute()
        result = service.to_result()
    finally:
        app.close()
    app.emit(result)
