"""Five-node planning agent: analyze, clarify or plan, execute each step, finalize."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Literal

from graphchat.engine import (
    DEFAULT_STEP_BUDGET,
    END,
    ChannelSchema,
    CompiledGraph,
    NodeFailure,
    Reducer,
    State,
    StateGraph,
    StepResult,
    TextCompletion,
)
from graphchat.workflows import tools
from graphchat.workflows.messages import assistant, last_human_content

logger = logging.getLogger(__name__)

AfterAnalyze = Literal["clarify", "plan"]
AfterExecute = Literal["execute", "finalize"]

TASK_TYPES = ("planning", "research", "decision", "general")
NO_INFO_VALUES = {"", "none", "no", "n/a", "nothing"}
DEFAULT_CLARIFICATION = "Could you provide more details?"
EMPTY_PLAN_RESULT = "No plan available to execute."

ANALYZE_PROMPT = """Analyze this user request: "{user_input}"

Determine:
1. What type of task is this? (planning, research, decision, general)
2. Is it clear and actionable?
3. What additional information might be needed?

Respond in format: TYPE: [type], CLEAR: [yes/no], NEEDS_INFO: [what info needed or "none"]"""

FINALIZE_PROMPT = """Based on the completed steps for the task: "{task}"

Steps completed:
{steps}

Provide a comprehensive final summary and recommendations."""

_FIELD_PATTERN = r"{name}\s*:\s*(?P<value>[^,\n]*(?:,(?!\s*[A-Z_]+\s*:)[^,\n]*)*)"


def _last_field(text: str, name: str) -> str | None:
    """Value of the last ``NAME: value`` occurrence in a model response."""
    matches = list(re.finditer(_FIELD_PATTERN.format(name=name), text, flags=re.IGNORECASE))
    if not matches:
        return None
    return matches[-1].group("value").strip()


def _normalize(value: str) -> str:
    return value.strip().strip("[]<>\"'.").strip().lower()


def parse_analysis(analysis: str) -> dict[str, Any]:
    """Extract task type and missing information from an analysis response.

    A missing NEEDS_INFO field, or one saying "none", means the request can
    be planned directly.
    """
    raw_type = _last_field(analysis, "TYPE")
    task_type = _normalize(raw_type) if raw_type else "general"
    if task_type not in TASK_TYPES:
        task_type = "general"

    raw_needs = _last_field(analysis, "NEEDS_INFO")
    needs_info = raw_needs is not None and _normalize(raw_needs) not in NO_INFO_VALUES
    return {
        "task_type": task_type,
        "needs_clarification": needs_info,
        "missing_info": raw_needs.strip() if needs_info and raw_needs else "",
    }


def build_agent_schema() -> ChannelSchema:
    schema = ChannelSchema()
    schema.declare("messages", Reducer.APPEND, default=list, value_type=list)
    schema.declare("current_task", Reducer.OVERWRITE, default=str, value_type=str)
    schema.declare("task_type", Reducer.OVERWRITE, default=lambda: "general", value_type=str)
    schema.declare("plan", Reducer.OVERWRITE, default=list, value_type=list)
    schema.declare("current_step", Reducer.OVERWRITE, default=int, value_type=int)
    schema.declare("completed_steps", Reducer.APPEND, default=list, value_type=list)
    schema.declare("user_preferences", Reducer.SHALLOW_UNION, default=dict, value_type=dict)
    schema.declare("context", Reducer.OVERWRITE, default=str, value_type=str)
    schema.declare("needs_clarification", Reducer.OVERWRITE, default=bool, value_type=bool)
    schema.declare("clarification_question", Reducer.OVERWRITE, default=str, value_type=str)
    schema.declare("final_result", Reducer.OVERWRITE, default=str, value_type=str)
    schema.declare("task_complete", Reducer.OVERWRITE, default=bool, value_type=bool)
    schema.declare("validation_feedback", Reducer.OVERWRITE, default=str, value_type=str)
    return schema


def analyze_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    user_input = last_human_content(state["messages"])
    analysis = capability.complete(ANALYZE_PROMPT.format(user_input=user_input))
    parsed = parse_analysis(analysis)

    question = ""
    if parsed["needs_clarification"]:
        question = (
            "I need more information to help you effectively. "
            f"{parsed['missing_info'] or DEFAULT_CLARIFICATION}"
        )
    logger.debug(
        "Analyzed request: type=%s needs_clarification=%s",
        parsed["task_type"],
        parsed["needs_clarification"],
    )
    return {
        "current_task": user_input,
        "task_type": parsed["task_type"],
        "needs_clarification": parsed["needs_clarification"],
        "clarification_question": question,
        "context": analysis,
    }


def clarify_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    return {
        "current_step": 0,
        "messages": [assistant(state["clarification_question"] or DEFAULT_CLARIFICATION)],
    }


def plan_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    plan = tools.create_plan(capability, state["current_task"], state["context"])
    logger.info("Planned %d step(s) for task", len(plan))
    return {"plan": plan, "current_step": 1, "needs_clarification": False}


def execute_node(state: State, capability: TextCompletion) -> StepResult:
    plan = state["plan"]
    current_step = state["current_step"]
    if not plan:
        return {"final_result": EMPTY_PLAN_RESULT, "current_step": current_step + 1}

    index = current_step - 1
    if not 0 <= index < len(plan):
        return NodeFailure(f"step {current_step} is outside the {len(plan)}-step plan")

    step = plan[index]
    result = tools.run_step(capability, step, state["current_task"], state["user_preferences"])
    return {
        "completed_steps": [f"{index + 1}. {step}: {result}"],
        "current_step": current_step + 1,
    }


def finalize_node(state: State, capability: TextCompletion) -> Mapping[str, Any]:
    completed = state["completed_steps"]
    summary = capability.complete(
        FINALIZE_PROMPT.format(task=state["current_task"], steps="\n\n".join(completed))
    )
    task_complete, feedback = tools.validate_completion(
        capability, state["current_task"], "\n".join(completed)
    )
    return {
        "final_result": summary,
        "task_complete": task_complete,
        "validation_feedback": feedback,
        "messages": [assistant(summary)],
    }


def route_after_analyze(state: State) -> AfterAnalyze:
    return "clarify" if state["needs_clarification"] else "plan"


def route_after_execute(state: State) -> AfterExecute:
    if state["current_step"] <= len(state["plan"]):
        return "execute"
    return "finalize"


def build_agent_graph(step_budget: int = DEFAULT_STEP_BUDGET) -> CompiledGraph:
    """Compile the agent graph with its clarification branch and execute loop."""
    graph = StateGraph(build_agent_schema(), name="agent")
    graph.add_node(
        "analyze",
        analyze_node,
        writes=["current_task", "task_type", "needs_clarification", "clarification_question", "context"],
    )
    graph.add_node("clarify", clarify_node, writes=["current_step", "messages"])
    graph.add_node("plan", plan_node, writes=["plan", "current_step", "needs_clarification"])
    graph.add_node(
        "execute", execute_node, writes=["completed_steps", "current_step", "final_result"]
    )
    graph.add_node(
        "finalize",
        finalize_node,
        writes=["final_result", "task_complete", "validation_feedback", "messages"],
    )

    graph.set_entry_point("analyze")
    graph.add_conditional_edges(
        "analyze", route_after_analyze, {"clarify": "clarify", "plan": "plan"}
    )
    graph.add_edge("clarify", END)
    graph.add_edge("plan", "execute")
    graph.add_conditional_edges(
        "execute", route_after_execute, {"execute": "execute", "finalize": "finalize"}
    )
    graph.add_edge("finalize", END)
    return graph.compile(step_budget=step_budget)
