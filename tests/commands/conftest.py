"""Fixtures for command tests: an importable module of sample services."""

from __future__ import annotations

import sys
import types
from typing import Any

import pytest

from performkit.domain.callbacks import on_fail, on_success
from performkit.domain.schema import filled
from performkit.services.base import Service

SAMPLE_MODULE = "performkit_sample_services"


class Greet(Service):
    schema = {"name": filled(str), "times": (int, 1)}
    schema_context_key = "current_user"

    def execute(self) -> None:
        self.within_transaction(lambda conn: True)

    def result_data(self) -> dict[str, Any]:
        return {"greeting": " ".join([f"hello {self.name}"] * self.times), "by": self.current_user}

    @on_success
    def log_greeting(self) -> None: ...

    @on_fail
    def alert(self) -> None: ...


class Ping(Service):
    def execute(self) -> None:
        self.success()


class NotAService:
    pass


@pytest.fixture
def sample_module(monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:
    module = types.ModuleType(SAMPLE_MODULE)
    for cls in (Greet, Ping, NotAService):
        setattr(module, cls.__name__, cls)
    monkeypatch.setitem(sys.modules, SAMPLE_MODULE, module)
    return module
