"""Tests for core configuration."""

import pytest

from graphchat.core.config import DEFAULT_MODEL, GraphChatSettings, load_settings
from graphchat.engine import DEFAULT_STEP_BUDGET

_ENV_VARS = [
    "GRAPHCHAT_OPENAI_MODEL",
    "GRAPHCHAT_TEMPERATURE",
    "GRAPHCHAT_CALL_TIMEOUT_SECONDS",
    "GRAPHCHAT_STEP_BUDGET",
    "GRAPHCHAT_NO_LLM",
    "GRAPHCHAT_LOG_LEVEL",
    "GRAPHCHAT_SERVER_HOST",
    "GRAPHCHAT_SERVER_PORT",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_settings_defaults() -> None:
    settings = GraphChatSettings()
    assert settings.model == DEFAULT_MODEL
    assert settings.temperature == 0.7
    assert settings.call_timeout_seconds == 60.0
    assert settings.step_budget == DEFAULT_STEP_BUDGET
    assert settings.no_llm is False
    assert settings.port == 8000


def test_settings_empty_model() -> None:
    with pytest.raises(ValueError, match="model cannot be empty"):
        GraphChatSettings(model="  ")


def test_settings_invalid_step_budget() -> None:
    with pytest.raises(ValueError, match="step_budget must be at least 1"):
        GraphChatSettings(step_budget=0)


def test_settings_invalid_temperature() -> None:
    with pytest.raises(ValueError, match="temperature"):
        GraphChatSettings(temperature=3.5)


def test_load_settings_defaults(clean_env: None) -> None:
    settings = load_settings()
    assert settings.model == DEFAULT_MODEL
    assert settings.host == "127.0.0.1"
    assert settings.log_level is None


def test_load_settings_from_env(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRAPHCHAT_OPENAI_MODEL", "gpt-test")
    monkeypatch.setenv("GRAPHCHAT_TEMPERATURE", "0.1")
    monkeypatch.setenv("GRAPHCHAT_CALL_TIMEOUT_SECONDS", "15")
    monkeypatch.setenv("GRAPHCHAT_STEP_BUDGET", "25")
    monkeypatch.setenv("GRAPHCHAT_NO_LLM", "yes")
    monkeypatch.setenv("GRAPHCHAT_LOG_LEVEL", "debug")
    monkeypatch.setenv("GRAPHCHAT_SERVER_PORT", "9001")

    settings = load_settings()

    assert settings.model == "gpt-test"
    assert settings.temperature == 0.1
    assert settings.call_timeout_seconds == 15.0
    assert settings.step_budget == 25
    assert settings.no_llm is True
    assert settings.log_level == "DEBUG"
    assert settings.port == 9001


def test_load_settings_rejects_bad_numbers(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GRAPHCHAT_STEP_BUDGET", "many")

    with pytest.raises(ValueError, match="GRAPHCHAT_STEP_BUDGET must be an integer"):
        load_settings()


def test_settings_invalid_log_level() -> None:
    with pytest.raises(ValueError, match="log_level must be one of"):
        GraphChatSettings(log_level="LOUD")
