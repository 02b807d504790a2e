"""Workflows built on the graph engine: the linear pipeline and the planning agent."""

from graphchat.workflows.agent import build_agent_graph
from graphchat.workflows.pipeline import build_pipeline_graph
from graphchat.workflows.runner import RunOutcome, run_agent, run_pipeline

__all__ = [
    "RunOutcome",
    "build_agent_graph",
    "build_pipeline_graph",
    "run_agent",
    "run_pipeline",
]
