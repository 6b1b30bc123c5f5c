"""Locate and read ``performkit.toml``.

Resolution order: an explicit path (``--config``), then the
``PERFORMKIT_CONFIG`` env var, then a walk up from the working directory.
An explicit or env path that names no file means "no config"; it never
falls back to the walk-up search.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "performkit.toml"
CONFIG_ENV_VAR = "PERFORMKIT_CONFIG"


def _walk_up(start: Path) -> Path | None:
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def find_config(explicit: str | Path | None = None, *, start: Path | None = None) -> Path | None:
    """Return the config file settings should read, or None.

    Args:
        explicit: Path given on the command line; wins over everything.
        start: Directory to walk up from (default: cwd).
    """
    pinned = explicit or os.environ.get(CONFIG_ENV_VAR)
    if pinned:
        path = Path(pinned)
        return path if path.is_file() else None
    return _walk_up((start or Path.cwd()).resolve())


def read_config(path: Path | None) -> dict[str, Any]:
    """Parse *path* into raw section data; ``{}`` when there is no file.

    Raises:
        click.ClickException: If the file is not valid TOML.
    """
    if path is None or not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc
