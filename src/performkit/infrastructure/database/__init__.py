"""SQLAlchemy-backed transaction support."""

from performkit.infrastructure.database.engine import create_db_engine
from performkit.infrastructure.database.transactions import SqlAlchemyTransactionProvider

__all__ = ["SqlAlchemyTransactionProvider", "create_db_engine"]
