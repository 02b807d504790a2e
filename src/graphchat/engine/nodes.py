"""Node registry: named step functions that read state and return partial updates."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, Union

from graphchat.engine.capability import TextCompletion
from graphchat.engine.channels import State
from graphchat.engine.edges import END
from graphchat.engine.errors import GraphConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeFailure:
    """Returned by a step function that cannot proceed.

    Attributes:
        reason: Human-readable explanation surfaced in the run error
    """

    reason: str


StepResult = Union[Mapping[str, Any], NodeFailure, None]


class StepFunction(Protocol):
    """Signature every node step function implements."""

    def __call__(self, state: State, capability: TextCompletion, /) -> StepResult: ...


@dataclass(frozen=True)
class Node:
    """A named unit of computation.

    Attributes:
        name: Unique node name referenced by edges
        step: Step function invoked with the current state and the capability
        writes: Channels the node may write, or None when undeclared
    """

    name: str
    step: StepFunction
    writes: frozenset[str] | None = None


class NodeRegistry:
    """Maps node names to step functions."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}

    def register(
        self,
        name: str,
        step: StepFunction,
        writes: Iterable[str] | None = None,
    ) -> Node:
        """Register a node; duplicate, empty or reserved names are configuration errors."""
        location = f"node '{name}'"
        if not isinstance(name, str) or not name:
            raise GraphConfigurationError.single(location, "name must be a non-empty string")
        if name == END:
            raise GraphConfigurationError.single(location, "name is reserved for the terminal sentinel")
        if name in self._nodes:
            raise GraphConfigurationError.single(location, "registered more than once")
        if not callable(step):
            raise GraphConfigurationError.single(location, "step function must be callable")

        node = Node(name=name, step=step, writes=frozenset(writes) if writes is not None else None)
        self._nodes[name] = node
        logger.debug("Registered node %s", name)
        return node

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, name: str) -> Node:
        return self._nodes[name]

    def as_mapping(self) -> dict[str, Node]:
        return dict(self._nodes)
