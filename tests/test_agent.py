"""Tests for the planning agent workflow."""

import pytest
from stubs import ScriptedCompletion

from graphchat.engine import RunStatus
from graphchat.workflows.agent import (
    ANALYZE_PROMPT,
    EMPTY_PLAN_RESULT,
    build_agent_graph,
    parse_analysis,
    route_after_analyze,
    route_after_execute,
)
from graphchat.workflows.messages import assistant, human

PLANNING_RESPONSES = {
    "Analyze this user request:": "TYPE: planning, CLEAR: yes, NEEDS_INFO: none",
    "Given the task:": "1. Research options\n2. Choose the best one",
    "Based on the completed steps": "Book the cheapest option.",
    "Has this task been completed": "YES. All steps covered.",
}


def test_agent_plans_executes_each_step_and_finalizes() -> None:
    completion = ScriptedCompletion(PLANNING_RESPONSES)

    result = build_agent_graph().invoke(
        {"messages": [human("Plan a weekend trip")]}, capability=completion
    )

    assert result.status == RunStatus.COMPLETED
    assert result.trace == ["analyze", "plan", "execute", "execute", "finalize"]
    state = result.state
    assert state["task_type"] == "planning"
    assert state["plan"] == ["Research options", "Choose the best one"]
    assert len(state["completed_steps"]) == 2
    assert state["completed_steps"][0].startswith("1. Research options: Research and provide")
    assert state["completed_steps"][1].startswith("2. Choose the best one: Given these options")
    assert state["current_step"] == 3
    assert state["final_result"] == "Book the cheapest option."
    assert state["task_complete"] is True
    assert state["validation_feedback"] == "All steps covered."
    assert state["messages"][-1] == assistant("Book the cheapest option.")


def test_agent_asks_for_clarification_when_info_missing() -> None:
    completion = ScriptedCompletion(
        {"Analyze this user request:": "TYPE: planning, CLEAR: no, NEEDS_INFO: your budget"}
    )

    result = build_agent_graph().invoke(
        {"messages": [human("Plan a trip")]}, capability=completion
    )

    assert result.status == RunStatus.COMPLETED
    assert result.trace == ["analyze", "clarify"]
    question = "I need more information to help you effectively. your budget"
    assert result.state["needs_clarification"] is True
    assert result.state["clarification_question"] == question
    assert result.state["plan"] == []
    assert result.state["completed_steps"] == []
    assert result.state["messages"] == [human("Plan a trip"), assistant(question)]
    assert len(completion.calls) == 1


def test_agent_with_echo_backend_takes_clarification_branch() -> None:
    completion = ScriptedCompletion()

    result = build_agent_graph().invoke({"messages": [human("hello")]}, capability=completion)

    assert result.trace == ["analyze", "clarify"]
    assert completion.calls == [ANALYZE_PROMPT.format(user_input="hello")]
    assert result.state["task_type"] == "general"


def test_agent_with_empty_plan_goes_straight_to_finalize() -> None:
    completion = ScriptedCompletion(
        {
            "Analyze this user request:": "TYPE: general, CLEAR: yes, NEEDS_INFO: none",
            "Given the task:": "I cannot plan this.",
            "Based on the completed steps": "Nothing to summarize.",
        }
    )

    result = build_agent_graph().invoke({"messages": [human("hmm")]}, capability=completion)

    assert result.trace == ["analyze", "plan", "execute", "finalize"]
    assert result.state["completed_steps"] == []
    assert result.state["final_result"] == "Nothing to summarize."
    assert EMPTY_PLAN_RESULT not in result.state["final_result"]


def test_agent_preferences_reach_decision_steps() -> None:
    completion = ScriptedCompletion(PLANNING_RESPONSES)

    build_agent_graph().invoke(
        {"messages": [human("Plan a trip")], "user_preferences": {"budget": "low"}},
        capability=completion,
    )

    decision_prompts = [call for call in completion.calls if call.startswith("Given these options")]
    assert decision_prompts
    assert "budget: low" in decision_prompts[0]


@pytest.mark.parametrize(
    ("analysis", "expected"),
    [
        (
            "TYPE: research, CLEAR: yes, NEEDS_INFO: none",
            {"task_type": "research", "needs_clarification": False, "missing_info": ""},
        ),
        (
            "TYPE: Decision\nCLEAR: no\nNEEDS_INFO: your budget, and dates",
            {
                "task_type": "decision",
                "needs_clarification": True,
                "missing_info": "your budget, and dates",
            },
        ),
        (
            "TYPE: poetry, NEEDS_INFO: N/A",
            {"task_type": "general", "needs_clarification": False, "missing_info": ""},
        ),
        (
            "I am not sure what you mean.",
            {"task_type": "general", "needs_clarification": False, "missing_info": ""},
        ),
    ],
)
def test_parse_analysis(analysis: str, expected: dict) -> None:
    assert parse_analysis(analysis) == expected


def test_parse_analysis_uses_last_occurrence() -> None:
    analysis = 'Format: NEEDS_INFO: [what info needed or "none"]\nTYPE: planning, NEEDS_INFO: none'

    assert parse_analysis(analysis)["needs_clarification"] is False


def test_routers() -> None:
    assert route_after_analyze({"needs_clarification": True}) == "clarify"
    assert route_after_analyze({"needs_clarification": False}) == "plan"
    assert route_after_execute({"current_step": 2, "plan": ["a", "b"]}) == "execute"
    assert route_after_execute({"current_step": 3, "plan": ["a", "b"]}) == "finalize"
    assert route_after_execute({"current_step": 2, "plan": []}) == "finalize"
