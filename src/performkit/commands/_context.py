"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Runtime initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

import click

from performkit.output.formatters import format_result

if TYPE_CHECKING:
    from performkit.config.settings import PerformkitSettings
    from performkit.infrastructure.runtime import Runtime
    from performkit.services.base import Service
    from performkit.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The runtime is built lazily on first use so ``--help`` and
    ``describe`` never open a database connection.
    """

    def __init__(self, settings: PerformkitSettings) -> None:
        self.settings = settings
        self._runtime: Runtime | None = None

        from performkit.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def runtime(self) -> Runtime:
        """The runtime instance (created lazily on first access)."""
        if self._runtime is None:
            from performkit.infrastructure.runtime import Runtime

            self._runtime = Runtime.from_settings(self.settings)
        return self._runtime

    def close(self) -> None:
        if self._runtime is not None:
            self._runtime.close()
            self._runtime = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout, returns normally. Warnings go to stderr
          so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        output = format_result(result, json_output=self.settings.json_output)
        if result.ok:
            click.echo(output)
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
            return
        click.echo(output, err=True)
        raise SystemExit(1)


def load_service_class(target: str) -> type[Service]:
    """Import ``module:ClassName`` and check it is a Service subclass.

    Raises:
        click.BadParameter: If the target cannot be imported or is not a service.
    """
    from performkit.services.base import Service

    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected MODULE:CLASS, got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import {module_name!r}: {exc}") from exc

    obj: object = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise click.BadParameter(f"{module_name!r} has no attribute {attr!r}")
    if not (isinstance(obj, type) and issubclass(obj, Service)):
        raise click.BadParameter(f"{target!r} is not a Service subclass")
    return obj
