"""Tests for the config commands."""

from __future__ import annotations

import json

import yaml
from typer.testing import CliRunner

from joidu_focus.main import app

runner = CliRunner()


def test_show_table(tmp_config) -> None:
    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0, result.output
    assert "Focus.Default Duration" in result.output


def test_show_json(tmp_config) -> None:
    result = runner.invoke(app, ["config", "show", "-o", "json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["focus"]["default_duration"] == 25
    assert data["sync"]["tick_ms"] == 50


def test_show_uses_configured_format(tmp_config) -> None:
    tmp_config.set_value("output.format", "yaml")

    result = runner.invoke(app, ["config", "show"])

    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.stdout)["output"]["format"] == "yaml"


def test_set_unknown_output_format(tmp_config) -> None:
    result = runner.invoke(app, ["config", "set", "output.format", "xml"])

    assert result.exit_code == 2
    assert tmp_config.config.output.format == "table"


def test_get(tmp_config) -> None:
    result = runner.invoke(app, ["config", "get", "focus.break_duration"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "5"


def test_get_unknown(tmp_config) -> None:
    result = runner.invoke(app, ["config", "get", "focus.colour"])
    assert result.exit_code == 5


def test_set_int(tmp_config) -> None:
    result = runner.invoke(app, ["config", "set", "focus.default_duration", "50"])

    assert result.exit_code == 0, result.output
    assert tmp_config.config.focus.default_duration == 50


def test_set_bool(tmp_config) -> None:
    result = runner.invoke(app, ["config", "set", "focus.auto_break", "true"])

    assert result.exit_code == 0, result.output
    assert tmp_config.config.focus.auto_break is True


def test_set_float(tmp_config) -> None:
    result = runner.invoke(app, ["config", "set", "sync.removal_delay", "2.5"])

    assert result.exit_code == 0, result.output
    assert tmp_config.config.sync.removal_delay == 2.5


def test_set_invalid_value(tmp_config) -> None:
    result = runner.invoke(app, ["config", "set", "focus.break_duration", "7"])

    assert result.exit_code == 2
    assert tmp_config.config.focus.break_duration == 5


def test_set_unknown_key(tmp_config) -> None:
    result = runner.invoke(app, ["config", "set", "focus.colour", "red"])
    assert result.exit_code == 5


def test_reset(tmp_config) -> None:
    tmp_config.set_value("focus.default_duration", 90)

    result = runner.invoke(app, ["config", "reset", "--yes"])

    assert result.exit_code == 0
    assert tmp_config.config.focus.default_duration == 25
