"""Service lifecycle states and the transitions between them.

A service starts ``pending`` and settles exactly once. Both settled
states are terminal: nothing ever moves a service out of them.
"""

from __future__ import annotations

from enum import StrEnum


class ServiceState(StrEnum):
    """Lifecycle state of a single service instance."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_settled(self) -> bool:
        return self is not ServiceState.PENDING


TRANSITIONS: dict[str, list[str]] = {
    "pending": ["success", "failed"],
    "success": [],
    "failed": [],
}


def can_transition(current: ServiceState, target: ServiceState) -> bool:
    """Return True if *current* may settle into *target*."""
    return target.value in TRANSITIONS[current.value]
