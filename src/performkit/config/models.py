"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, performkit.toml only contains
overrides. An empty file (or no file at all) is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel


class DatabaseConfig(BaseModel):
    """[database] section — backs the SQLAlchemy transaction provider."""

    model_config = {"frozen": True}

    url: str = "sqlite://"
    echo: bool = False


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    entry_point_group: str = "performkit.plugins"
