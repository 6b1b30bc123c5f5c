"""Shared pytest fixtures and test helpers for performkit tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from performkit.infrastructure.database import SqlAlchemyTransactionProvider, create_db_engine
from performkit.infrastructure.runtime import Runtime, use_runtime
from performkit.infrastructure.transactions import InMemoryTransactionProvider
from performkit.plugins.manager import PluginManager

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String, nullable=False, unique=True),
)


@pytest.fixture
def db_engine() -> Iterator[Engine]:
    """In-memory SQLite engine with the ``users`` test table created."""
    engine = create_db_engine("sqlite://")
    metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def memory_provider() -> InMemoryTransactionProvider:
    return InMemoryTransactionProvider()


@pytest.fixture
def plugin_manager() -> PluginManager:
    """Plugin manager with no entry-point discovery."""
    return PluginManager()


@pytest.fixture
def runtime(memory_provider: InMemoryTransactionProvider, plugin_manager: PluginManager) -> Runtime:
    """Runtime backed by the in-memory provider."""
    return Runtime(memory_provider, plugins=plugin_manager)


@pytest.fixture
def db_runtime(db_engine: Engine) -> Runtime:
    """Runtime backed by SQLAlchemy on the in-memory engine."""
    return Runtime(SqlAlchemyTransactionProvider(db_engine), engine=db_engine)


@pytest.fixture
def active_runtime(runtime: Runtime) -> Iterator[Runtime]:
    """Install ``runtime`` as the current runtime for the test."""
    with use_runtime(runtime):
        yield runtime


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty temp dir so no stray performkit.toml is discovered."""
    monkeypatch.delenv("PERFORMKIT_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
