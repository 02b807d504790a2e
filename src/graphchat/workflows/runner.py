"""Reusable runners that invoke the compiled workflows for one request."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, Field

from graphchat.core.config import GraphChatSettings
from graphchat.engine import (
    CancellationToken,
    CompiledGraph,
    RunErrorKind,
    RunResult,
    TextCompletion,
    state_to_dict,
)
from graphchat.workflows.agent import build_agent_graph
from graphchat.workflows.messages import Message, human
from graphchat.workflows.pipeline import build_pipeline_graph

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["COMPLETED", "FAILED", "CANCELLED"]

ERROR_HINTS: dict[str, str] = {
    RunErrorKind.ROUTING.value: "configuration problem",
    RunErrorKind.NODE.value: "the assistant failed to respond",
    RunErrorKind.BUDGET_EXCEEDED.value: "this task is taking too many steps",
}


class OutcomeError(BaseModel):
    """Serializable run error for callers outside the engine."""

    kind: str
    node: str | None = None
    message: str
    hint: str


class RunOutcome(BaseModel):
    """Normalized outcome of a single workflow invocation."""

    status: OutcomeStatus
    result: dict[str, Any] = Field(default_factory=dict)
    trace: list[str] = Field(default_factory=list)
    error: OutcomeError | None = None


@lru_cache(maxsize=8)
def pipeline_graph(step_budget: int) -> CompiledGraph:
    return build_pipeline_graph(step_budget=step_budget)


@lru_cache(maxsize=8)
def agent_graph(step_budget: int) -> CompiledGraph:
    return build_agent_graph(step_budget=step_budget)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Message):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def to_outcome(result: RunResult) -> RunOutcome:
    """Convert an engine result into a ``RunOutcome``."""
    error = None
    if result.error is not None:
        error = OutcomeError(
            kind=result.error.kind.value,
            node=result.error.node,
            message=result.error.message,
            hint=ERROR_HINTS[result.error.kind.value],
        )
    return RunOutcome(
        status=result.status.value,
        result=_jsonable(state_to_dict(result.state)),
        trace=list(result.trace),
        error=error,
    )


def run_pipeline(
    user_input: str,
    completion: TextCompletion,
    settings: GraphChatSettings | None = None,
    cancel_token: CancellationToken | None = None,
) -> RunOutcome:
    """Run the analyze -> reason -> answer pipeline on one input."""
    settings = settings or GraphChatSettings()
    if not user_input.strip():
        raise ValueError("Input cannot be empty")

    result = pipeline_graph(settings.step_budget).invoke(
        {"messages": [human(user_input)]},
        capability=completion,
        cancel_token=cancel_token,
        call_timeout=settings.call_timeout_seconds,
    )
    logger.info("Pipeline run %s finished with status %s", result.run_id, result.status.value)
    return to_outcome(result)


def run_agent(
    user_input: str,
    completion: TextCompletion,
    history: Sequence[Message] = (),
    preferences: Mapping[str, Any] | None = None,
    settings: GraphChatSettings | None = None,
    cancel_token: CancellationToken | None = None,
) -> RunOutcome:
    """Run the planning agent on one input plus prior conversation turns."""
    settings = settings or GraphChatSettings()
    if not user_input.strip():
        raise ValueError("Input cannot be empty")

    overrides: dict[str, Any] = {"messages": [*history, human(user_input)]}
    if preferences:
        overrides["user_preferences"] = dict(preferences)

    result = agent_graph(settings.step_budget).invoke(
        overrides,
        capability=completion,
        cancel_token=cancel_token,
        call_timeout=settings.call_timeout_seconds,
    )
    logger.info(
        "Agent run %s finished with status %s after %d steps",
        result.run_id,
        result.status.value,
        result.steps,
    )
    return to_outcome(result)
