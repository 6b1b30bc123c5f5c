"""Tests for Runtime and the current-runtime context variable."""

from __future__ import annotations

from pathlib import Path

import pytest

from performkit.config.settings import PerformkitSettings
from performkit.infrastructure.database import SqlAlchemyTransactionProvider
from performkit.infrastructure.runtime import (
    Runtime,
    current_runtime,
    set_runtime,
    use_runtime,
)
from performkit.infrastructure.transactions import InMemoryTransactionProvider
from performkit.services.exceptions import MissingTransactionProvider


class TestRuntime:
    def test_transactions(self, memory_provider: InMemoryTransactionProvider) -> None:
        rt = Runtime(memory_provider)
        assert rt.transactions is memory_provider
        assert rt.has_transactions is True
        assert rt.plugins is None

    def test_missing_transactions_raises(self) -> None:
        rt = Runtime()
        assert rt.has_transactions is False
        with pytest.raises(MissingTransactionProvider):
            _ = rt.transactions

    def test_from_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PERFORMKIT_CONFIG", raising=False)
        settings = PerformkitSettings.from_cli(start=tmp_path)
        rt = Runtime.from_settings(settings)
        try:
            assert isinstance(rt.transactions, SqlAlchemyTransactionProvider)
            assert rt.engine is not None
            assert rt.plugins is not None
            assert rt.plugins.list_plugin_names() == []
        finally:
            rt.close()

    def test_from_settings_without_plugins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("PERFORMKIT_CONFIG", raising=False)
        (tmp_path / "performkit.toml").write_text("[plugins]\nenabled = false\n")
        settings = PerformkitSettings.from_cli(start=tmp_path)
        rt = Runtime.from_settings(settings)
        try:
            assert rt.plugins is None
        finally:
            rt.close()


class TestCurrentRuntime:
    def test_default_is_none(self) -> None:
        assert current_runtime() is None

    def test_use_runtime_scopes(self) -> None:
        rt = Runtime()
        with use_runtime(rt) as active:
            assert active is rt
            assert current_runtime() is rt
        assert current_runtime() is None

    def test_nested_use_restores_outer(self) -> None:
        outer, inner = Runtime(), Runtime()
        with use_runtime(outer):
            with use_runtime(inner):
                assert current_runtime() is inner
            assert current_runtime() is outer

    def test_set_runtime_token(self) -> None:
        from performkit.infrastructure import runtime as runtime_module

        rt = Runtime()
        token = set_runtime(rt)
        try:
            assert current_runtime() is rt
        finally:
            runtime_module._current_runtime.reset(token)
        assert current_runtime() is None
