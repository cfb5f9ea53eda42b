"""Tests for the sync simulation commands."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from joidu_focus.main import app

runner = CliRunner()


def test_scenarios_json(tmp_config) -> None:
    result = runner.invoke(app, ["sync", "scenarios", "-o", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert len(data) == 5
    assert {"scenario": "settings_sync", "duration_ms": 1500, "message": "Saving your preferences..."} in data


def test_scenarios_table(tmp_config) -> None:
    result = runner.invoke(app, ["sync", "scenarios"])

    assert result.exit_code == 0
    assert "backup_sync" in result.output


def test_scenarios_bad_output_format(tmp_config) -> None:
    result = runner.invoke(app, ["sync", "scenarios", "-o", "xml"])

    assert result.exit_code == 2
    assert "Unknown output format" in result.output


def test_simulate_unknown_scenario(tmp_config) -> None:
    result = runner.invoke(app, ["sync", "simulate", "nightly"])

    assert result.exit_code == 5
    assert "Unknown scenario" in result.output


def test_simulate_negative_duration(tmp_config) -> None:
    result = runner.invoke(app, ["sync", "simulate", "manual_sync", "--duration", "-1"])
    assert result.exit_code == 2


def test_simulate_runs_to_completion(tmp_config) -> None:
    result = runner.invoke(app, ["sync", "simulate", "settings_sync", "--duration", "100"])

    assert result.exit_code == 0, result.output
    assert "settings_sync finished" in result.output


def test_simulate_uses_configured_tick(tmp_config, mocker) -> None:
    tmp_config.set_value("sync.tick_ms", 20)
    simulate = mocker.patch("joidu_focus.commands.sync.simulate_sync", new=mocker.AsyncMock())

    result = runner.invoke(app, ["sync", "simulate", "login_sync"])

    assert result.exit_code == 0, result.output
    args, kwargs = simulate.await_args
    assert args[2] == "Loading your account data..."
    assert args[3] == 4000
    assert kwargs["tick_ms"] == 20
