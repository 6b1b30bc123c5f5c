"""Transaction outcomes and the provider contract.

A transactional block reports how it ended with an explicit outcome:
:class:`Commit` carries the block's value, :class:`Rollback` an optional
reason. Raising :class:`RollbackSignal` from deep inside a block is the
same as returning ``Rollback``; providers translate it instead of
letting it escape. Every other exception rolls back and propagates.

:class:`InMemoryTransactionProvider` stages writes: nothing reaches the
store until the block commits, and a rollback just drops the staged
operations.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Commit:
    """Commit the transaction; *value* is whatever the block produced."""

    value: Any = None


@dataclass(frozen=True)
class Rollback:
    """Roll the transaction back without raising."""

    reason: str | None = None


type TransactionOutcome = Commit | Rollback


class RollbackSignal(Exception):  # noqa: N818
    """Raised inside a transactional block to request a clean rollback."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or "rollback requested")
        self.reason = reason


def as_outcome(value: Any) -> TransactionOutcome:
    """Normalize a block's return value into an explicit outcome.

    ``Commit``/``Rollback`` pass through; anything else is judged by
    truthiness.
    """
    if isinstance(value, (Commit, Rollback)):
        return value
    if value:
        return Commit(value)
    return Rollback()


class TransactionProvider(Protocol):
    """Runs a block inside a transaction and reports its outcome.

    Contract: commit iff the block returns ``Commit``; roll back without
    raising on ``Rollback`` or :class:`RollbackSignal`; roll back and
    re-raise on any other exception.
    """

    def run_in_transaction(
        self,
        block: Callable[[Any], TransactionOutcome],
    ) -> TransactionOutcome: ...


# ---------------------------------------------------------------------------
# In-memory provider
# ---------------------------------------------------------------------------


@dataclass
class _StagedWrite:
    key: str
    value: Any
    delete: bool = False


@dataclass
class MemoryTransaction:
    """Handle passed to blocks run by :class:`InMemoryTransactionProvider`.

    Reads see staged writes layered over the committed store.
    """

    _store: dict[str, Any]
    _staged: list[_StagedWrite] = field(default_factory=list, repr=False)

    def set(self, key: str, value: Any) -> None:
        self._staged.append(_StagedWrite(key=key, value=value))

    def delete(self, key: str) -> None:
        self._staged.append(_StagedWrite(key=key, value=None, delete=True))

    def get(self, key: str, default: Any = None) -> Any:
        view = dict(self._store)
        self._apply(view)
        return view.get(key, default)

    def _apply(self, target: dict[str, Any]) -> None:
        for op in self._staged:
            if op.delete:
                target.pop(op.key, None)
            else:
                target[op.key] = op.value


class InMemoryTransactionProvider:
    """Dict-backed provider with commit/rollback bookkeeping.

    Useful wherever a real database would be overkill: tests, demos, and
    services whose only side effects are external calls.
    """

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.commits = 0
        self.rollbacks = 0
        self.active = False

    def run_in_transaction(
        self,
        block: Callable[[Any], TransactionOutcome],
    ) -> TransactionOutcome:
        txn = MemoryTransaction(_store=self.store)
        self.active = True
        try:
            outcome = block(txn)
        except RollbackSignal as signal:
            self.rollbacks += 1
            logger.debug("Transaction rolled back by signal: %s", signal.reason)
            return Rollback(reason=signal.reason)
        except BaseException:
            self.rollbacks += 1
            raise
        finally:
            self.active = False

        if isinstance(outcome, Commit):
            txn._apply(self.store)
            self.commits += 1
        else:
            self.rollbacks += 1
        return outcome
