"""Runtime — the collaborators a service reaches for while it runs.

A runtime bundles the transaction provider and the plugin manager. It
is the one dependency a service resolves: passed explicitly with
``Service(..., runtime=rt)``, or picked up from the current context
(:func:`use_runtime` / :func:`set_runtime`), which is a ``ContextVar``
so threads and asyncio tasks never see each other's runtime.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

from performkit.services.exceptions import MissingTransactionProvider

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from performkit.config.settings import PerformkitSettings
    from performkit.infrastructure.transactions import TransactionProvider
    from performkit.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

_current_runtime: ContextVar[Runtime | None] = ContextVar("_current_runtime", default=None)


class Runtime:
    """Transaction provider + plugin manager handed to services."""

    def __init__(
        self,
        transactions: TransactionProvider | None = None,
        *,
        plugins: PluginManager | None = None,
        engine: Engine | None = None,
    ) -> None:
        self._transactions = transactions
        self._plugins = plugins
        self._engine = engine

    @classmethod
    def from_settings(cls, settings: PerformkitSettings) -> Runtime:
        """Build a SQLAlchemy-backed runtime from resolved settings."""
        from performkit.infrastructure.database import (
            SqlAlchemyTransactionProvider,
            create_db_engine,
        )
        from performkit.plugins.manager import PluginManager

        engine = create_db_engine(settings.database.url, echo=settings.database.echo)
        plugins: PluginManager | None = None
        if settings.plugins.enabled:
            plugins = PluginManager()
            plugins.discover_and_load(group=settings.plugins.entry_point_group)
        return cls(SqlAlchemyTransactionProvider(engine), plugins=plugins, engine=engine)

    @property
    def has_transactions(self) -> bool:
        return self._transactions is not None

    @property
    def transactions(self) -> TransactionProvider:
        """The transaction provider.

        Raises:
            MissingTransactionProvider: If none was configured.
        """
        if self._transactions is None:
            raise MissingTransactionProvider("runtime has no transaction provider")
        return self._transactions

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager (None if plugins are disabled)."""
        return self._plugins

    @property
    def engine(self) -> Engine | None:
        return self._engine

    def close(self) -> None:
        """Dispose of the engine, if this runtime created one."""
        if self._engine is not None:
            self._engine.dispose()


def current_runtime() -> Runtime | None:
    """Return the runtime installed for the current context, if any."""
    return _current_runtime.get()


def set_runtime(runtime: Runtime | None) -> Token[Runtime | None]:
    """Install *runtime* for the current context; returns a reset token."""
    return _current_runtime.set(runtime)


@contextmanager
def use_runtime(runtime: Runtime) -> Iterator[Runtime]:
    """Install *runtime* for the duration of the ``with`` block.

    Usage::

        with use_runtime(Runtime(InMemoryTransactionProvider())):
            CreateUser(user, {"email": "a@b.c"}).execute()
    """
    token = _current_runtime.set(runtime)
    try:
        yield runtime
    finally:
        _current_runtime.reset(token)
