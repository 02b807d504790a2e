"""Configuration management for graphchat."""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import BaseModel

from graphchat.engine.graph import DEFAULT_STEP_BUDGET

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
TRUE_LIKE = {"1", "true", "yes", "on"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GraphChatSettings(BaseModel):
    """Runtime settings shared by the CLI and the HTTP handler."""

    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    call_timeout_seconds: float = 60.0
    step_budget: int = DEFAULT_STEP_BUDGET
    no_llm: bool = False
    log_level: str | None = None
    host: str = "127.0.0.1"
    port: int = 8000

    def model_post_init(self, __context: Any) -> None:
        """Validate configuration values after model initialization."""
        if not self.model.strip():
            raise ValueError("model cannot be empty")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be between 0 and 2")
        if self.call_timeout_seconds <= 0:
            raise ValueError("call_timeout_seconds must be > 0")
        if self.step_budget < 1:
            raise ValueError("step_budget must be at least 1")
        if self.log_level is not None and self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.port <= 0:
            raise ValueError("port must be > 0")


def _env_float(name: str, default: str) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError as exc:
        raise ValueError(f"{name} must be a float") from exc


def _env_int(name: str, default: str) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


def load_settings() -> GraphChatSettings:
    """Load settings from ``GRAPHCHAT_*`` environment variables with validation."""
    settings = GraphChatSettings(
        model=os.getenv("GRAPHCHAT_OPENAI_MODEL") or DEFAULT_MODEL,
        temperature=_env_float("GRAPHCHAT_TEMPERATURE", "0.7"),
        call_timeout_seconds=_env_float("GRAPHCHAT_CALL_TIMEOUT_SECONDS", "60"),
        step_budget=_env_int("GRAPHCHAT_STEP_BUDGET", str(DEFAULT_STEP_BUDGET)),
        no_llm=os.getenv("GRAPHCHAT_NO_LLM", "false").strip().lower() in TRUE_LIKE,
        log_level=os.getenv("GRAPHCHAT_LOG_LEVEL", "").strip().upper() or None,
        host=os.getenv("GRAPHCHAT_SERVER_HOST", "127.0.0.1"),
        port=_env_int("GRAPHCHAT_SERVER_PORT", "8000"),
    )
    logger.debug(
        "Settings loaded: model=%s, no_llm=%s, step_budget=%d",
        settings.model,
        settings.no_llm,
        settings.step_budget,
    )
    return settings
