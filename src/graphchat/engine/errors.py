"""Error taxonomy for the graph engine.

Configuration errors are raised while a graph is being declared or
compiled. Run errors (routing, node, budget, cancellation) are raised
inside the executor and converted into a ``RunResult`` before they reach
the caller.
"""

from __future__ import annotations

from collections.abc import Iterable


class GraphError(Exception):
    """Base class for every error raised by the graph engine."""


class GraphConfigurationError(GraphError, ValueError):
    """A graph declaration is invalid.

    Attributes:
        issues: ``(location, reason)`` pairs, one per detected problem
    """

    def __init__(self, issues: Iterable[tuple[str, str]]) -> None:
        self.issues: list[tuple[str, str]] = list(issues)
        lines = [f"{location}: {reason}" for location, reason in self.issues]
        super().__init__("Invalid graph configuration: " + "; ".join(lines))

    @classmethod
    def single(cls, location: str, reason: str) -> GraphConfigurationError:
        return cls([(location, reason)])


class UnknownChannelError(GraphError, ValueError):
    """A state update referenced channels the schema does not declare."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = sorted(names)
        super().__init__(f"Unknown channel(s): {', '.join(self.names)}")


class ChannelTypeError(GraphError, TypeError):
    """A merged channel value does not match the channel's declared type."""

    def __init__(self, channel: str, expected: type, actual: object) -> None:
        self.channel = channel
        self.expected = expected
        super().__init__(
            f"Channel '{channel}' expects {expected.__name__}, got {type(actual).__name__}"
        )


class RunFailedError(GraphError):
    """Base class for failures that abort a single run."""

    def __init__(self, node: str | None, message: str) -> None:
        self.node = node
        super().__init__(message)


class RoutingError(RunFailedError):
    """A router returned a label with no mapped destination."""

    def __init__(self, node: str, label: object, message: str | None = None) -> None:
        self.label = label
        super().__init__(
            node, message or f"Router for node '{node}' returned unmapped label {label!r}"
        )


class NodeExecutionError(RunFailedError):
    """A node failed, either by returning a failure result or by raising."""


class StepBudgetExceededError(RunFailedError):
    """The run attempted more node executions than its step budget allows."""

    def __init__(self, node: str, budget: int) -> None:
        self.budget = budget
        super().__init__(
            node,
            f"Step budget of {budget} exhausted before running node '{node}'",
        )


class RunCancelledError(RunFailedError):
    """The caller cancelled the run."""

    def __init__(self, node: str | None) -> None:
        where = f" at node '{node}'" if node else ""
        super().__init__(node, f"Run cancelled{where}")
