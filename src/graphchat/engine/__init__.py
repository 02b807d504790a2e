"""Graph-based state machine executor.

Declare channels, register nodes and edges, compile once, then invoke the
compiled graph per request with a fresh initial state.
"""

from graphchat.engine.capability import CapabilityError, CapabilityTimeoutError, TextCompletion
from graphchat.engine.channels import (
    Channel,
    ChannelSchema,
    Reducer,
    State,
    append,
    overwrite,
    shallow_union,
    state_to_dict,
)
from graphchat.engine.edges import END, ConditionalEdge, EdgeTable, StaticEdge
from graphchat.engine.errors import (
    ChannelTypeError,
    GraphConfigurationError,
    GraphError,
    NodeExecutionError,
    RoutingError,
    RunCancelledError,
    RunFailedError,
    StepBudgetExceededError,
    UnknownChannelError,
)
from graphchat.engine.executor import (
    CancellationToken,
    RunError,
    RunErrorKind,
    RunResult,
    RunStatus,
    invoke,
)
from graphchat.engine.graph import DEFAULT_STEP_BUDGET, CompiledGraph, StateGraph, compile_graph
from graphchat.engine.nodes import Node, NodeFailure, NodeRegistry, StepFunction, StepResult

__all__ = [
    "DEFAULT_STEP_BUDGET",
    "END",
    "CancellationToken",
    "CapabilityError",
    "CapabilityTimeoutError",
    "Channel",
    "ChannelSchema",
    "ChannelTypeError",
    "CompiledGraph",
    "ConditionalEdge",
    "EdgeTable",
    "GraphConfigurationError",
    "GraphError",
    "Node",
    "NodeExecutionError",
    "NodeFailure",
    "NodeRegistry",
    "Reducer",
    "RoutingError",
    "RunCancelledError",
    "RunError",
    "RunErrorKind",
    "RunFailedError",
    "RunResult",
    "RunStatus",
    "State",
    "StateGraph",
    "StaticEdge",
    "StepBudgetExceededError",
    "StepFunction",
    "StepResult",
    "TextCompletion",
    "UnknownChannelError",
    "append",
    "compile_graph",
    "invoke",
    "overwrite",
    "shallow_union",
    "state_to_dict",
]
