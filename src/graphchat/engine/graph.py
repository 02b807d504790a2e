"""Graph assembly: validate a declaration once and freeze it for many runs."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from graphchat.engine.capability import TextCompletion
from graphchat.engine.channels import ChannelSchema
from graphchat.engine.edges import END, ConditionalEdge, Edge, EdgeTable, Router, describe_edge
from graphchat.engine.errors import GraphConfigurationError
from graphchat.engine.executor import CancellationToken, RunResult, invoke
from graphchat.engine.nodes import Node, NodeRegistry, StepFunction

logger = logging.getLogger(__name__)

DEFAULT_STEP_BUDGET = 100


@dataclass(frozen=True)
class CompiledGraph:
    """Immutable bundle of entry node, schema, nodes and edges.

    Runs only read from it, so one instance can serve concurrent
    invocations.
    """

    name: str
    entry: str
    schema: ChannelSchema
    nodes: Mapping[str, Node]
    edges: Mapping[str, Edge]
    step_budget: int = DEFAULT_STEP_BUDGET
    terminal: str = END
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def invoke(
        self,
        overrides: Mapping[str, Any] | None = None,
        *,
        capability: TextCompletion,
        cancel_token: CancellationToken | None = None,
        step_budget: int | None = None,
        call_timeout: float | None = None,
    ) -> RunResult:
        """Run the graph once; see ``graphchat.engine.executor.invoke``."""
        return invoke(
            self,
            overrides,
            capability=capability,
            cancel_token=cancel_token,
            step_budget=step_budget,
            call_timeout=call_timeout,
        )

    def describe(self) -> dict[str, Any]:
        """JSON-friendly topology summary."""
        return {
            "name": self.name,
            "entry": self.entry,
            "terminal": self.terminal,
            "step_budget": self.step_budget,
            "channels": list(self.schema.names),
            "nodes": list(self.nodes),
            "edges": {source: describe_edge(edge) for source, edge in self.edges.items()},
            "warnings": list(self.warnings),
        }


def _reachable(entry: str, edges: Mapping[str, Edge]) -> set[str]:
    seen = {entry}
    queue = deque([entry])
    while queue:
        edge = edges.get(queue.popleft())
        if edge is None:
            continue
        for destination in edge.destinations:
            if destination != END and destination not in seen:
                seen.add(destination)
                queue.append(destination)
    return seen


def compile_graph(
    entry: str,
    schema: ChannelSchema,
    nodes: NodeRegistry,
    edges: EdgeTable,
    *,
    step_budget: int = DEFAULT_STEP_BUDGET,
    name: str = "graph",
) -> CompiledGraph:
    """Validate the declaration and return an immutable graph.

    Every problem found is collected and reported together in one
    ``GraphConfigurationError``. Unreachable nodes only produce warnings.

    Raises:
        GraphConfigurationError: If the declaration is invalid
    """
    issues: list[tuple[str, str]] = []
    node_map = nodes.as_mapping()
    edge_map = edges.as_mapping()

    if not isinstance(step_budget, int) or step_budget < 1:
        issues.append(("step_budget", "must be a positive integer"))

    if entry not in node_map:
        issues.append(("entry", f"entry node '{entry}' is not registered"))

    for source, edge in edge_map.items():
        location = f"edge from '{source}'"
        if source not in node_map:
            issues.append((location, "source node is not registered"))
        for destination in edge.destinations:
            if destination != END and destination not in node_map:
                issues.append((location, f"destination '{destination}' is not registered"))
        if isinstance(edge, ConditionalEdge):
            for label in edge.missing_labels():
                issues.append((location, f"router label {label!r} has no destination"))

    for node_name, node in node_map.items():
        if node_name not in edge_map:
            issues.append((f"node '{node_name}'", "has no outgoing edge rule"))
        if node.writes is not None:
            for channel in sorted(node.writes - set(schema.names)):
                issues.append((f"node '{node_name}'", f"writes undeclared channel '{channel}'"))

    if issues:
        for location, reason in issues:
            logger.error("Graph '%s' configuration error at %s: %s", name, location, reason)
        raise GraphConfigurationError(issues)

    warnings: list[str] = []
    reachable = _reachable(entry, edge_map)
    unreachable = [node_name for node_name in node_map if node_name not in reachable]
    for node_name in unreachable:
        message = f"node '{node_name}' is not reachable from entry '{entry}'"
        logger.warning("Graph '%s': %s", name, message)
        warnings.append(message)

    compiled = CompiledGraph(
        name=name,
        entry=entry,
        schema=schema.frozen(),
        nodes=MappingProxyType(node_map),
        edges=MappingProxyType(edge_map),
        step_budget=step_budget,
        warnings=tuple(warnings),
    )
    logger.info(
        "Compiled graph '%s': %d nodes, %d channels, entry=%s",
        name,
        len(node_map),
        len(schema),
        entry,
    )
    return compiled


class StateGraph:
    """Builder that collects channels, nodes and edges, then compiles them."""

    def __init__(self, schema: ChannelSchema | None = None, name: str = "graph") -> None:
        self.schema = schema if schema is not None else ChannelSchema()
        self.nodes = NodeRegistry()
        self.edges = EdgeTable()
        self.name = name
        self._entry_point: str | None = None

    def add_node(
        self,
        name: str,
        step: StepFunction,
        writes: Iterable[str] | None = None,
    ) -> StateGraph:
        self.nodes.register(name, step, writes=writes)
        return self

    def add_edge(self, source: str, destination: str) -> StateGraph:
        self.edges.add_edge(source, destination)
        return self

    def add_conditional_edges(
        self,
        source: str,
        router: Router,
        path_map: Mapping[Hashable, str] | None = None,
    ) -> StateGraph:
        self.edges.add_conditional_edge(source, router, path_map)
        return self

    def set_entry_point(self, name: str) -> StateGraph:
        self._entry_point = name
        return self

    def compile(self, step_budget: int = DEFAULT_STEP_BUDGET) -> CompiledGraph:
        if self._entry_point is None:
            raise GraphConfigurationError.single("entry", "entry point not set")
        return compile_graph(
            self._entry_point,
            self.schema,
            self.nodes,
            self.edges,
            step_budget=step_budget,
            name=self.name,
        )
