from __future__ import annotations

import importlib

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("expedition.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_cli_run_and_path_commands() -> None:
    testing = pytest.importorskip("typer.testing")
    module = importlib.import_module("expedition.main")
    runner = testing.CliRunner()

    started = runner.invoke(module.app, ["start"])
    assert started.exit_code == 0
    assert "session_ticks" in started.output

    ran = runner.invoke(module.app, ["run", "--seed", "cli", "--script", "enrol,survey"])
    assert ran.exit_code == 0
    assert "luck" in ran.output

    routed = runner.invoke(module.app, ["path", "--seed", "cli", "--script", "enrol"])
    assert routed.exit_code == 0
    assert "reachable" in routed.output


def test_cli_rejects_bad_script() -> None:
    testing = pytest.importorskip("typer.testing")
    module = importlib.import_module("expedition.main")

    result = testing.CliRunner().invoke(module.app, ["run", "--script", "dance"])

    assert result.exit_code != 0
