"""Pydantic schemas for the chat HTTP endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryMessage(CamelModel):
    """One prior conversation turn as sent by the front end."""

    type: str = "human"
    content: str


class AgentRequest(CamelModel):
    input: str = ""
    conversation_history: list[HistoryMessage] = Field(default_factory=list)
    preferences: dict[str, Any] = Field(default_factory=dict)


class PipelineRequest(CamelModel):
    input: str = ""


class AgentResult(CamelModel):
    current_task: str = ""
    task_type: str = "general"
    plan: list[str] = Field(default_factory=list)
    current_step: int = 0
    completed_steps: list[str] = Field(default_factory=list)
    needs_clarification: bool = False
    clarification_question: str = ""
    final_result: str = ""
    task_complete: bool = False
    validation_feedback: str = ""
    context: str = ""


class PipelineResult(CamelModel):
    current_step: str = "start"
    reasoning: str = ""
    final_answer: str = ""


class AgentResponse(CamelModel):
    success: bool = True
    result: AgentResult
    trace: list[str] = Field(default_factory=list)


class PipelineResponse(CamelModel):
    success: bool = True
    result: PipelineResult
    trace: list[str] = Field(default_factory=list)
