"""SqlAlchemyTransactionProvider — run service blocks on a DB transaction."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from performkit.infrastructure.transactions import (
    Commit,
    Rollback,
    RollbackSignal,
    TransactionOutcome,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class SqlAlchemyTransactionProvider:
    """Transaction provider backed by a SQLAlchemy engine.

    The block receives the open :class:`sqlalchemy.Connection`. Commit
    happens only for an explicit ``Commit`` outcome; ``Rollback`` and
    :class:`RollbackSignal` roll back quietly; any other exception rolls
    back and propagates.

    Usage::

        provider = SqlAlchemyTransactionProvider(engine)
        provider.run_in_transaction(
            lambda conn: Commit(conn.execute(insert(users).values(...)))
        )
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def run_in_transaction(
        self,
        block: Callable[[Any], TransactionOutcome],
    ) -> TransactionOutcome:
        with self._engine.connect() as conn:
            trans = conn.begin()
            try:
                outcome = block(conn)
            except RollbackSignal as signal:
                trans.rollback()
                logger.debug("Transaction rolled back by signal: %s", signal.reason)
                return Rollback(reason=signal.reason)
            except BaseException:
                trans.rollback()
                raise

            if isinstance(outcome, Commit):
                trans.commit()
            else:
                trans.rollback()
                logger.debug("Transaction rolled back: %s", outcome.reason)
            return outcome
