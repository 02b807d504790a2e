"""Shared fixtures for graphchat tests."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _offline_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep every test away from OpenAI and Opik."""
    monkeypatch.setenv("OPIK_TRACK_DISABLE", "true")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
