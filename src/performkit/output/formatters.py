"""Rich/JSON output helpers for results and service definitions."""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table

from performkit.output.console import create_console, get_output

if TYPE_CHECKING:
    from performkit.services.base import Service
    from performkit.services.result import ServiceResult


def _format_mapping_human(data: dict[str, Any]) -> str:
    """Format a mapping as indented key-value pairs."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            lines.append(f"  {key}: {_json.dumps(value, separators=(',', ':'), default=str)}")
        else:
            lines.append(f"  {key}: {value}")
    return "\n".join(lines)


def format_result(result: ServiceResult, *, json_output: bool = False) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    if result.ok:
        parts = [f"OK: {result.op}"]
        if result.data:
            parts.append(_format_mapping_human(result.data))
        return "\n".join(parts)
    message = result.error.message if result.error else "Unknown error"
    parts = [f"ERROR: {result.op} - {message}"]
    if result.errors:
        parts.append(_format_mapping_human(result.errors))
    return "\n".join(parts)


def describe_definition(service_cls: type[Service]) -> dict[str, Any]:
    """Summarize a service type's schema and callbacks as plain data."""
    defn = service_cls.definition()
    schema: dict[str, Any] | None = None
    if defn.schema is not None:
        schema = {
            "model": defn.schema.model.__name__,
            "fields": sorted(defn.schema.fields),
            "context_key": defn.schema.context_key,
        }
    return {
        "service": f"{service_cls.__module__}.{service_cls.__qualname__}",
        "op": service_cls.operation_name(),
        "schema": schema,
        "callbacks": {
            "success": [entry.label for entry in defn.callbacks.success],
            "fail": [entry.label for entry in defn.callbacks.fail],
        },
    }


def format_definition(
    service_cls: type[Service],
    *,
    json_output: bool = False,
    no_color: bool = False,
) -> str:
    """Render a service definition as JSON or a Rich table."""
    summary = describe_definition(service_cls)
    if json_output:
        return _json.dumps(summary, indent=2)

    console = create_console(no_color=no_color)
    console.print(f"[pk.op]{summary['service']}[/pk.op] [pk.key]({summary['op']})[/pk.key]")

    schema = summary["schema"]
    if schema is None:
        console.print("[pk.key]schema:[/pk.key] none (all arguments exposed)")
    else:
        table = Table(title=f"schema {schema['model']}", show_header=True)
        table.add_column("field", style="pk.field")
        table.add_column("kind")
        for name in schema["fields"]:
            table.add_row(name, "declared")
        if schema["context_key"]:
            table.add_row(schema["context_key"], "context")
        console.print(table)

    for event in ("success", "fail"):
        handlers = summary["callbacks"][event]
        listing = ", ".join(handlers) if handlers else "-"
        console.print(f"[pk.event.{event}]on_{event}:[/pk.event.{event}] {listing}")
    return get_output(console).rstrip("\n")
