"""Executor: run a compiled graph one node at a time until END."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from graphchat.engine.capability import TextCompletion
from graphchat.engine.channels import State
from graphchat.engine.edges import END
from graphchat.engine.errors import (
    ChannelTypeError,
    NodeExecutionError,
    RoutingError,
    RunCancelledError,
    RunFailedError,
    StepBudgetExceededError,
    UnknownChannelError,
)
from graphchat.engine.nodes import Node, NodeFailure

if TYPE_CHECKING:
    from graphchat.engine.graph import CompiledGraph

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Final status of one invocation."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class RunErrorKind(str, Enum):
    """Why a run failed."""

    ROUTING = "routing"
    NODE = "node"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass(frozen=True)
class RunError:
    """Structured description of a failed run.

    Attributes:
        kind: Failure category
        node: Node that was running or routing when the run failed
        message: Human-readable explanation
        label: Offending router label for routing errors
        cause: Underlying exception, when there was one
    """

    kind: RunErrorKind
    node: str | None
    message: str
    label: Any = None
    cause: BaseException | None = field(default=None, compare=False)


class CancellationToken:
    """Thread-safe flag a caller sets to abandon a run between steps."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class RunResult:
    """Outcome of one invocation.

    Attributes:
        status: COMPLETED, FAILED or CANCELLED
        state: Final state for completed runs, last fully merged state otherwise
        error: Failure details when status is FAILED
        steps: Number of node executions started
        trace: Node names in execution order
        run_id: Identifier used in log lines for this run
    """

    status: RunStatus
    state: State
    error: RunError | None = None
    steps: int = 0
    trace: list[str] = field(default_factory=list)
    run_id: str = ""

    @property
    def ok(self) -> bool:
        return self.status == RunStatus.COMPLETED

    def raise_for_status(self) -> State:
        """Return the final state, or raise the exception matching the failure."""
        if self.status == RunStatus.CANCELLED:
            raise RunCancelledError(self.trace[-1] if self.trace else None)
        if self.error is None:
            return self.state
        if self.error.kind == RunErrorKind.ROUTING:
            raise RoutingError(self.error.node or "", self.error.label, self.error.message)
        if self.error.kind == RunErrorKind.BUDGET_EXCEEDED:
            raise StepBudgetExceededError(self.error.node or "", self.steps)
        raise NodeExecutionError(self.error.node, self.error.message) from self.error.cause


class _GuardedCapability:
    """Per-run view of the capability that honours cancellation and the call timeout."""

    def __init__(
        self,
        capability: TextCompletion,
        token: CancellationToken,
        call_timeout: float | None,
    ) -> None:
        self._capability = capability
        self._token = token
        self._call_timeout = call_timeout
        self.node: str | None = None

    def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        if self._token.cancelled:
            raise RunCancelledError(self.node)
        response = self._capability.complete(
            prompt, timeout=timeout if timeout is not None else self._call_timeout
        )
        if self._token.cancelled:
            raise RunCancelledError(self.node)
        return response


def _apply_node(graph: CompiledGraph, node: Node, state: State, guard: _GuardedCapability) -> State:
    guard.node = node.name
    try:
        update = node.step(state, guard)
    except RunCancelledError:
        raise
    except Exception as exc:
        raise NodeExecutionError(node.name, f"Node '{node.name}' raised: {exc}") from exc

    if update is None:
        return state
    if isinstance(update, NodeFailure):
        raise NodeExecutionError(node.name, f"Node '{node.name}' failed: {update.reason}")
    if not isinstance(update, Mapping):
        raise NodeExecutionError(
            node.name,
            f"Node '{node.name}' returned {type(update).__name__}, expected a mapping",
        )
    if node.writes is not None:
        undeclared = sorted(set(update) - node.writes)
        if undeclared:
            raise NodeExecutionError(
                node.name,
                f"Node '{node.name}' wrote undeclared channel(s): {', '.join(undeclared)}",
            )
    try:
        return graph.schema.merge(state, update)
    except (UnknownChannelError, ChannelTypeError, TypeError) as exc:
        raise NodeExecutionError(node.name, f"Node '{node.name}' update rejected: {exc}") from exc


def _failure(exc: RunFailedError) -> RunError:
    if isinstance(exc, RoutingError):
        return RunError(RunErrorKind.ROUTING, exc.node, str(exc), label=exc.label, cause=exc.__cause__)
    if isinstance(exc, StepBudgetExceededError):
        return RunError(RunErrorKind.BUDGET_EXCEEDED, exc.node, str(exc))
    return RunError(RunErrorKind.NODE, exc.node, str(exc), cause=exc.__cause__)


def invoke(
    graph: CompiledGraph,
    overrides: Mapping[str, Any] | None = None,
    *,
    capability: TextCompletion,
    cancel_token: CancellationToken | None = None,
    step_budget: int | None = None,
    call_timeout: float | None = None,
) -> RunResult:
    """Run ``graph`` from its entry node until END, a failure or cancellation.

    Args:
        graph: Compiled graph; never mutated
        overrides: Initial channel values merged over the schema defaults
        capability: Text-completion backend handed to every node
        cancel_token: Checked before every node and every capability call
        step_budget: Maximum node executions, defaults to the graph's budget
        call_timeout: Per-call timeout passed to the capability

    Returns:
        RunResult describing the outcome; run failures are never raised

    Raises:
        UnknownChannelError: If ``overrides`` names undeclared channels
        ChannelTypeError: If an override does not match its channel's declared type
        TypeError: If an override has the wrong shape for its reducer, such as
            a string for an append channel
        ValueError: If ``step_budget`` is not positive
    """
    budget = step_budget if step_budget is not None else graph.step_budget
    if budget < 1:
        raise ValueError("step_budget must be a positive integer")
    token = cancel_token or CancellationToken()
    run_id = uuid.uuid4().hex[:12]

    state = graph.schema.merge(graph.schema.initial_state(), overrides or {})
    guard = _GuardedCapability(capability, token, call_timeout)
    trace: list[str] = []
    current = graph.entry
    started = time.monotonic()
    logger.debug("Run %s of graph '%s' starting at %s", run_id, graph.name, current)

    try:
        while current != END:
            if token.cancelled:
                raise RunCancelledError(current)
            if len(trace) >= budget:
                raise StepBudgetExceededError(current, budget)

            node = graph.nodes[current]
            trace.append(current)
            state = _apply_node(graph, node, state, guard)
            next_node = graph.edges[current].resolve(state)
            logger.debug("Run %s step %d: %s -> %s", run_id, len(trace), current, next_node)
            current = next_node
    except RunCancelledError as exc:
        logger.info("Run %s of graph '%s' cancelled at %s", run_id, graph.name, exc.node)
        return RunResult(RunStatus.CANCELLED, state, steps=len(trace), trace=trace, run_id=run_id)
    except RunFailedError as exc:
        error = _failure(exc)
        logger.warning(
            "Run %s of graph '%s' failed (%s) at %s: %s",
            run_id,
            graph.name,
            error.kind.value,
            error.node,
            error.message,
        )
        return RunResult(RunStatus.FAILED, state, error=error, steps=len(trace), trace=trace, run_id=run_id)

    logger.info(
        "Run %s of graph '%s' completed in %d steps (%.2fs)",
        run_id,
        graph.name,
        len(trace),
        time.monotonic() - started,
    )
    return RunResult(RunStatus.COMPLETED, state, steps=len(trace), trace=trace, run_id=run_id)
