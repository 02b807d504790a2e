"""Edge table: static and conditional transitions between nodes."""

from __future__ import annotations

import logging
import typing
from collections.abc import Callable, Hashable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Union

from graphchat.engine.channels import State
from graphchat.engine.errors import GraphConfigurationError, RoutingError

logger = logging.getLogger(__name__)

END = "__END__"

Router = Callable[[State], Hashable]


def literal_labels(router: Router) -> tuple[Hashable, ...] | None:
    """Labels a router can return, read from a ``Literal[...]`` return annotation.

    Returns None when the router is not annotated that way, in which case
    totality can only be checked while the graph runs.
    """
    try:
        hints = typing.get_type_hints(router)
    except Exception:  # noqa: BLE001 - lambdas, partials, unresolved forward refs
        return None
    return_type = hints.get("return")
    if return_type is None:
        return None
    if typing.get_origin(return_type) is Literal:
        return typing.get_args(return_type)
    if typing.get_origin(return_type) is Union:
        labels: list[Hashable] = []
        for member in typing.get_args(return_type):
            if typing.get_origin(member) is not Literal:
                return None
            labels.extend(typing.get_args(member))
        return tuple(labels)
    return None


@dataclass(frozen=True)
class StaticEdge:
    """Unconditional transition from ``source`` to ``destination``."""

    source: str
    destination: str

    @property
    def destinations(self) -> tuple[str, ...]:
        return (self.destination,)

    def resolve(self, state: State) -> str:
        return self.destination


@dataclass(frozen=True)
class ConditionalEdge:
    """Transition chosen by a router label.

    Attributes:
        source: Node owning the rule
        router: Pure function mapping state to a label
        path_map: Label to destination node (or END)
        declared_labels: Labels from the router's ``Literal`` annotation, if any
    """

    source: str
    router: Router
    path_map: Mapping[Hashable, str] = field(default_factory=dict)
    declared_labels: tuple[Hashable, ...] | None = None

    @property
    def destinations(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(self.path_map.values()))

    def missing_labels(self) -> list[Hashable]:
        """Declared labels the path map does not cover."""
        if self.declared_labels is None:
            return []
        return [label for label in self.declared_labels if label not in self.path_map]

    def resolve(self, state: State) -> str:
        try:
            label = self.router(state)
        except Exception as exc:
            raise RoutingError(
                self.source, None, f"Router for node '{self.source}' raised: {exc}"
            ) from exc
        try:
            destination = self.path_map[label]
        except (KeyError, TypeError):
            raise RoutingError(self.source, label) from None
        logger.debug("Router for %s chose %r -> %s", self.source, label, destination)
        return destination


Edge = Union[StaticEdge, ConditionalEdge]


class EdgeTable:
    """At most one outgoing rule per source node."""

    def __init__(self) -> None:
        self._edges: dict[str, Edge] = {}

    def _claim(self, source: str) -> None:
        if source in self._edges:
            raise GraphConfigurationError.single(
                f"edge from '{source}'", "node already has an outgoing edge rule"
            )
        if source == END:
            raise GraphConfigurationError.single(
                f"edge from '{source}'", "the terminal sentinel cannot have outgoing edges"
            )

    def add_edge(self, source: str, destination: str) -> StaticEdge:
        """Register a static transition."""
        self._claim(source)
        edge = StaticEdge(source=source, destination=destination)
        self._edges[source] = edge
        return edge

    def add_conditional_edge(
        self,
        source: str,
        router: Router,
        path_map: Mapping[Hashable, str] | None = None,
    ) -> ConditionalEdge:
        """Register a branching transition.

        ``path_map`` may be omitted when ``router`` is annotated as returning
        a ``Literal`` of destination names.
        """
        self._claim(source)
        if not callable(router):
            raise GraphConfigurationError.single(f"edge from '{source}'", "router must be callable")

        labels = literal_labels(router)
        if path_map is None:
            if labels is None:
                raise GraphConfigurationError.single(
                    f"edge from '{source}'",
                    "path_map is required unless the router returns a Literal of node names",
                )
            path_map = {label: str(label) for label in labels}

        edge = ConditionalEdge(
            source=source,
            router=router,
            path_map=MappingProxyType(dict(path_map)),
            declared_labels=labels,
        )
        self._edges[source] = edge
        return edge

    def __contains__(self, source: object) -> bool:
        return source in self._edges

    def __iter__(self) -> Iterator[str]:
        return iter(self._edges)

    def __getitem__(self, source: str) -> Edge:
        return self._edges[source]

    def as_mapping(self) -> dict[str, Edge]:
        return dict(self._edges)


def describe_edge(edge: Edge) -> dict[str, Any]:
    """JSON-friendly description of one edge rule."""
    if isinstance(edge, StaticEdge):
        return {"type": "static", "destination": edge.destination}
    return {
        "type": "conditional",
        "router": getattr(edge.router, "__name__", repr(edge.router)),
        "path_map": {str(label): dest for label, dest in edge.path_map.items()},
    }
