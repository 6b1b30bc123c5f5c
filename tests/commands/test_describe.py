"""Tests for the describe command."""

from __future__ import annotations

import json
import types

import pytest
from click.testing import CliRunner

from performkit.cli import cli


@pytest.mark.usefixtures("_isolated_config")
class TestDescribe:
    def test_human_output(self, cli_runner: CliRunner, sample_module: types.ModuleType) -> None:
        result = cli_runner.invoke(cli, ["describe", f"{sample_module.__name__}:Greet"])
        assert result.exit_code == 0, result.output
        assert "greet" in result.output
        assert "name" in result.output
        assert "current_user" in result.output
        assert "on_success: log_greeting" in result.output
        assert "on_fail: alert" in result.output

    def test_json_output(self, cli_runner: CliRunner, sample_module: types.ModuleType) -> None:
        result = cli_runner.invoke(cli, ["--json", "describe", f"{sample_module.__name__}:Greet"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["op"] == "greet"
        assert data["schema"]["fields"] == ["name", "times"]
        assert data["schema"]["context_key"] == "current_user"
        assert data["callbacks"] == {"success": ["log_greeting"], "fail": ["alert"]}

    def test_without_schema(self, cli_runner: CliRunner, sample_module: types.ModuleType) -> None:
        result = cli_runner.invoke(cli, ["describe", f"{sample_module.__name__}:Ping"])
        assert result.exit_code == 0, result.output
        assert "schema: none" in result.output

    @pytest.mark.parametrize(
        "target",
        [
            "no_colon",
            "performkit_missing_module:Thing",
            "{module}:Missing",
            "{module}:NotAService",
        ],
    )
    def test_bad_target(
        self, cli_runner: CliRunner, sample_module: types.ModuleType, target: str
    ) -> None:
        result = cli_runner.invoke(cli, ["describe", target.format(module=sample_module.__name__)])
        assert result.exit_code == 2
