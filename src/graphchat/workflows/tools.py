"""LLM-backed tools used by the agent's plan and execute steps."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Literal

from graphchat.engine import TextCompletion

logger = logging.getLogger(__name__)

ToolName = Literal["research", "decision", "general"]

_NUMBERED_LINE = re.compile(r"^\d+\.\s*")
_VERDICT_PREFIX = re.compile(r"^(yes|no)\b[\s.:,-]*", re.IGNORECASE)

RESEARCH_HINTS = ("research", "find", "information")
DECISION_HINTS = ("choose", "decide", "recommend")


def create_plan(capability: TextCompletion, task: str, context: str) -> list[str]:
    """Ask for a numbered plan and parse it into step descriptions."""
    prompt = (
        f'Given the task: "{task}" and context: "{context}",\n'
        "create a step-by-step plan. Return only the steps as a numbered list, nothing else."
    )
    return parse_numbered_list(capability.complete(prompt))


def parse_numbered_list(text: str) -> list[str]:
    """Extract ``1. step`` style lines, dropping numbering and empty entries."""
    steps: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not _NUMBERED_LINE.match(line):
            continue
        step = _NUMBERED_LINE.sub("", line, count=1).strip()
        if step:
            steps.append(step)
    return steps


def research_topic(capability: TextCompletion, topic: str) -> str:
    prompt = (
        f'Research and provide comprehensive information about: "{topic}".\n'
        "Include key facts, important considerations, and practical advice."
    )
    return capability.complete(prompt)


def make_decision(capability: TextCompletion, options: Sequence[str], criteria: str) -> str:
    prompt = (
        f"Given these options: {', '.join(options)}\n"
        f'and criteria: "{criteria}", provide a recommendation with reasoning.'
    )
    return capability.complete(prompt)


def validate_completion(capability: TextCompletion, task: str, result: str) -> tuple[bool, str]:
    """Ask whether ``result`` completes ``task``.

    Returns:
        ``(complete, feedback)`` where feedback has the YES/NO verdict stripped
    """
    prompt = (
        "Has this task been completed successfully?\n"
        f'Task: "{task}"\n'
        f'Result: "{result}"\n\n'
        'Respond with only "YES" or "NO" followed by brief feedback.'
    )
    response = capability.complete(prompt).strip()
    verdict = _VERDICT_PREFIX.match(response)
    complete = bool(verdict) and verdict.group(1).lower() == "yes"
    feedback = _VERDICT_PREFIX.sub("", response, count=1).strip()
    return complete, feedback


def select_tool(step: str) -> ToolName:
    """Pick a tool for a plan step from keywords in its description."""
    lowered = step.lower()
    if any(hint in lowered for hint in RESEARCH_HINTS):
        return "research"
    if any(hint in lowered for hint in DECISION_HINTS):
        return "decision"
    return "general"


def describe_preferences(preferences: Mapping[str, Any]) -> str:
    """Decision criteria text built from accumulated user preferences."""
    if not preferences:
        return "user needs and preferences"
    details = ", ".join(f"{key}: {value}" for key, value in sorted(preferences.items()))
    return f"user needs and preferences ({details})"


def execute_general_step(capability: TextCompletion, step: str, task: str) -> str:
    prompt = (
        f'Execute this step: "{step}"\n'
        f'as part of the larger task: "{task}".\n'
        "Provide a detailed response with actionable insights."
    )
    return capability.complete(prompt)


def run_step(
    capability: TextCompletion,
    step: str,
    task: str,
    preferences: Mapping[str, Any],
) -> str:
    """Execute one plan step with the tool its description calls for."""
    tool = select_tool(step)
    logger.debug("Plan step %r uses tool %s", step, tool)
    if tool == "research":
        return research_topic(capability, step)
    if tool == "decision":
        return make_decision(capability, [step], describe_preferences(preferences))
    return execute_general_step(capability, step, task)
