"""Tests for CLI."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest
from click.testing import CliRunner
from stubs import FailingCompletion

from graphchat.cli import main as cli_main
from graphchat.cli.main import cli
from graphchat.engine import CapabilityError


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "graphchat: chat workflows" in result.output


def test_ask_command_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "--help"])

    assert result.exit_code == 0
    assert "--mode" in result.output
    assert "--no-llm" in result.output
    assert "--preference" in result.output
    assert "--step-budget" in result.output


def test_ask_pipeline_offline() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "What is 2+2?", "--mode", "pipeline", "--no-llm"])

    assert result.exit_code == 0, result.output
    assert "provide a comprehensive and helpful final answer" in result.output
    assert "What is 2+2?" in result.output


def test_ask_agent_offline_json() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "Plan a trip", "--no-llm", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["status"] == "COMPLETED"
    assert payload["trace"] == ["analyze", "clarify"]
    assert payload["result"]["needs_clarification"] is True


def test_ask_failure_exits_nonzero(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cli_main,
        "create_completion",
        lambda settings: FailingCompletion(lambda: CapabilityError("service down")),
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "Plan a trip"])

    assert result.exit_code == 1
    assert "the assistant failed to respond" in result.output


def test_ask_rejects_malformed_preference() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "Plan a trip", "--no-llm", "--preference", "nobudget"])

    assert result.exit_code == 2
    assert "KEY=VALUE" in result.output


def test_ask_rejects_invalid_step_budget() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "Plan a trip", "--no-llm", "--step-budget", "0"])

    assert result.exit_code == 1


def test_graph_command_prints_topology() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["graph", "agent"])

    assert result.exit_code == 0
    topology = json.loads(result.output)
    assert topology["name"] == "agent"
    assert topology["entry"] == "analyze"
    assert topology["nodes"] == ["analyze", "clarify", "plan", "execute", "finalize"]
    assert topology["edges"]["execute"]["type"] == "conditional"


def _record_log_level(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    levels: list[str] = []
    monkeypatch.setattr(cli_main, "setup_logging", lambda level="INFO", log_file=None: levels.append(level))
    return levels


def test_ask_log_level_comes_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    levels = _record_log_level(monkeypatch)
    monkeypatch.setenv("GRAPHCHAT_LOG_LEVEL", "DEBUG")
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "hi", "--mode", "pipeline", "--no-llm"])

    assert result.exit_code == 0, result.output
    assert levels == ["DEBUG"]


def test_ask_log_level_option_wins_over_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    levels = _record_log_level(monkeypatch)
    monkeypatch.setenv("GRAPHCHAT_LOG_LEVEL", "DEBUG")
    runner = CliRunner()
    result = runner.invoke(
        cli, ["ask", "hi", "--mode", "pipeline", "--no-llm", "--log-level", "error"]
    )

    assert result.exit_code == 0, result.output
    assert levels == ["ERROR"]


def test_ask_log_level_defaults_to_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    levels = _record_log_level(monkeypatch)
    monkeypatch.delenv("GRAPHCHAT_LOG_LEVEL", raising=False)
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "hi", "--mode", "pipeline", "--no-llm"])

    assert result.exit_code == 0, result.output
    assert levels == ["WARNING"]


def test_ask_rejects_blank_input() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "   ", "--no-llm"])

    assert result.exit_code == 2
    assert "input cannot be empty" in result.output
    assert "Configuration error" not in result.output


class _InterruptedFuture:
    """Future whose first ``result()`` call behaves as if Ctrl-C was pressed."""

    def __init__(self, fn: Callable[..., Any], *args: Any) -> None:
        self.fn = fn
        self.args = args
        self.interrupted = False

    def result(self) -> Any:
        if not self.interrupted:
            self.interrupted = True
            raise KeyboardInterrupt
        return self.fn(*self.args)


class _InterruptingExecutor:
    def __init__(self, max_workers: int) -> None:
        self.max_workers = max_workers

    def __enter__(self) -> _InterruptingExecutor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def submit(self, fn: Callable[..., Any], *args: Any) -> _InterruptedFuture:
        return _InterruptedFuture(fn, *args)


def test_ctrl_c_cancels_run_and_exits_130(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_main, "ThreadPoolExecutor", _InterruptingExecutor)
    runner = CliRunner()
    result = runner.invoke(cli, ["ask", "What is 2+2?", "--mode", "pipeline", "--no-llm", "--json"])

    assert result.exit_code == 130
    assert "Cancelling after the current step" in result.output
    assert '"status": "CANCELLED"' in result.output
    assert '"trace": []' in result.output
