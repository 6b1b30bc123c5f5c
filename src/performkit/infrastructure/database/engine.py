"""Database engine setup.

SQLAlchemy Core (not ORM) is enough here: services receive a plain
``Connection`` inside their transactional block and own their queries.
SQLite connections get foreign keys enabled, file databases WAL mode.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for *url*, applying SQLite pragmas when relevant."""
    engine = create_engine(url, echo=echo)

    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        in_memory = parsed.database in (None, "", ":memory:")

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine
