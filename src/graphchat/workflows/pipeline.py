"""Single-pass analyze -> reason -> answer workflow."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from graphchat.engine import (
    DEFAULT_STEP_BUDGET,
    END,
    ChannelSchema,
    CompiledGraph,
    Reducer,
    State,
    StateGraph,
    TextCompletion,
)
from graphchat.workflows.messages import assistant, last_human_content

ANALYZE_PROMPT = (
    'Analyze this input: "{user_input}".\n'
    "Break down what the user is asking for and identify the key components."
)
REASON_PROMPT = (
    'Based on the analysis: "{analysis}",\n'
    "provide detailed reasoning for how to approach this problem step by step."
)
ANSWER_PROMPT = (
    'Based on the analysis and reasoning provided: "{reasoning}",\n'
    "provide a comprehensive and helpful final answer to the user's question."
)


def build_pipeline_schema() -> ChannelSchema:
    schema = ChannelSchema()
    schema.declare("messages", Reducer.APPEND, default=list, value_type=list)
    schema.declare("current_step", Reducer.OVERWRITE, default=lambda: "start", value_type=str)
    schema.declare("reasoning", Reducer.OVERWRITE, default=str, value_type=str)
    schema.declare("final_answer", Reducer.OVERWRITE, default=str, value_type=str)
    return schema


def analyze_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    prompt = ANALYZE_PROMPT.format(user_input=last_human_content(state["messages"]))
    return {"current_step": "analysis", "reasoning": capability.complete(prompt)}


def reason_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    response = capability.complete(REASON_PROMPT.format(analysis=state["reasoning"]))
    return {
        "current_step": "reasoning",
        "reasoning": f"{state['reasoning']}\n\nReasoning: {response}",
    }


def answer_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    response = capability.complete(ANSWER_PROMPT.format(reasoning=state["reasoning"]))
    return {
        "current_step": "completed",
        "final_answer": response,
        "messages": [assistant(response)],
    }


def build_pipeline_graph(step_budget: int = DEFAULT_STEP_BUDGET) -> CompiledGraph:
    """Compile the three-node pipeline; no branching."""
    graph = StateGraph(build_pipeline_schema(), name="pipeline")
    graph.add_node("analyze", analyze_node, writes=["current_step", "reasoning"])
    graph.add_node("reason", reason_node, writes=["current_step", "reasoning"])
    graph.add_node("answer", answer_node, writes=["current_step", "final_answer", "messages"])

    graph.set_entry_point("analyze")
    graph.add_edge("analyze", "reason")
    graph.add_edge("reason", "answer")
    graph.add_edge("answer", END)
    return graph.compile(step_budget=step_budget)
