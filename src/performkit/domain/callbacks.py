"""Callback registry — ordered success/fail hooks per service type.

Registries are immutable. A subclass gets its own registry by copying
its parent's and appending, so ancestor hooks always run first and
nothing a subclass declares can leak back up the hierarchy.

Handlers are either method names, resolved on the instance at dispatch
time (so overrides apply), or callables invoked as ``handler(service)``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

CALLBACK_MARKER = "__performkit_callbacks__"

F = TypeVar("F", bound=Callable[..., Any])


class CallbackEvent(StrEnum):
    """Settlement event a callback is registered for."""

    SUCCESS = "success"
    FAIL = "fail"


@dataclass(frozen=True)
class CallbackEntry:
    """One registered hook."""

    event: CallbackEvent
    handler: str | Callable[[Any], Any]

    @property
    def label(self) -> str:
        """Human-readable handler name (for logs and ``describe``)."""
        if isinstance(self.handler, str):
            return self.handler
        return getattr(self.handler, "__qualname__", repr(self.handler))

    def invoke(self, service: Any) -> None:
        if isinstance(self.handler, str):
            getattr(service, self.handler)()
        else:
            self.handler(service)


@dataclass(frozen=True)
class CallbackRegistry:
    """Immutable ordered hook lists, one per event."""

    success: tuple[CallbackEntry, ...] = ()
    fail: tuple[CallbackEntry, ...] = ()

    def for_event(self, event: CallbackEvent) -> tuple[CallbackEntry, ...]:
        if event is CallbackEvent.SUCCESS:
            return self.success
        return self.fail

    def has_method(self, event: CallbackEvent, name: str) -> bool:
        return any(entry.handler == name for entry in self.for_event(event))

    def extended(self, entries: Iterable[CallbackEntry]) -> CallbackRegistry:
        """Return a new registry with *entries* appended after this one's."""
        success = list(self.success)
        fail = list(self.fail)
        for entry in entries:
            if entry.event is CallbackEvent.SUCCESS:
                success.append(entry)
            else:
                fail.append(entry)
        return CallbackRegistry(success=tuple(success), fail=tuple(fail))


def _mark(func: F, event: CallbackEvent) -> F:
    events: tuple[CallbackEvent, ...] = getattr(func, CALLBACK_MARKER, ())
    setattr(func, CALLBACK_MARKER, (*events, event))
    return func


def on_success(func: F) -> F:
    """Register the decorated method as a success callback."""
    return _mark(func, CallbackEvent.SUCCESS)


def on_fail(func: F) -> F:
    """Register the decorated method as a fail callback."""
    return _mark(func, CallbackEvent.FAIL)


def collect_declared(
    namespace: dict[str, Any],
    inherited: CallbackRegistry,
) -> list[CallbackEntry]:
    """Find decorated methods in a class *namespace*, in definition order.

    Methods already registered by name on an ancestor are skipped: the
    ancestor's entry resolves to the override anyway, and keeps its place.
    """
    entries: list[CallbackEntry] = []
    for name, attr in namespace.items():
        for event in getattr(attr, CALLBACK_MARKER, ()):
            if inherited.has_method(event, name):
                continue
            entries.append(CallbackEntry(event=event, handler=name))
    return entries
