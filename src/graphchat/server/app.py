"""FastAPI application exposing the chat workflows to the web front end."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from graphchat import __version__
from graphchat.core.config import GraphChatSettings, load_settings
from graphchat.engine import TextCompletion
from graphchat.llm.openai_client import create_completion
from graphchat.observability.opik_client import is_tracing_enabled
from graphchat.server.schemas import (
    AgentRequest,
    AgentResponse,
    AgentResult,
    PipelineRequest,
    PipelineResponse,
    PipelineResult,
)
from graphchat.workflows.messages import Message
from graphchat.workflows.runner import RunOutcome, agent_graph, pipeline_graph, run_agent, run_pipeline

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR_KIND = {
    "node": 502,
    "budget_exceeded": 508,
    "routing": 500,
}


def _history(request: AgentRequest) -> list[Message]:
    return [
        Message(role="human" if item.type == "human" else "assistant", content=item.content)
        for item in request.conversation_history
    ]


def _raise_for_outcome(outcome: RunOutcome) -> None:
    if outcome.status == "CANCELLED":
        raise HTTPException(status_code=503, detail={"error": "Request was cancelled"})
    if outcome.error is not None:
        raise HTTPException(
            status_code=_STATUS_BY_ERROR_KIND.get(outcome.error.kind, 500),
            detail={
                "error": "Failed to process request",
                "kind": outcome.error.kind,
                "node": outcome.error.node,
                "hint": outcome.error.hint,
                "details": outcome.error.message,
            },
        )


def create_app(
    settings: GraphChatSettings | None = None,
    completion: TextCompletion | None = None,
) -> FastAPI:
    """Create the chat API app.

    Both workflow graphs are compiled here, once, so configuration errors
    surface at startup instead of on the first request.
    """
    settings = settings or load_settings()
    completion = completion or create_completion(settings)
    agent_graph(settings.step_budget)
    pipeline_graph(settings.step_budget)

    app = FastAPI(title="graphchat API", version=__version__)
    app.state.settings = settings
    app.state.completion = completion

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    @app.get("/api/workflow")
    def workflow_info() -> dict[str, Any]:
        return {
            "message": "graphchat agent API is running",
            "endpoints": {
                "POST /api/workflow": "Run the planning agent with input and conversation history",
                "POST /api/pipeline": "Run the analyze -> reason -> answer pipeline",
            },
        }

    @app.post("/api/workflow", response_model=AgentResponse)
    def run_agent_endpoint(request: AgentRequest) -> AgentResponse:
        if not request.input.strip():
            raise HTTPException(status_code=400, detail={"error": "Input is required"})

        outcome = run_agent(
            request.input,
            completion,
            history=_history(request),
            preferences=request.preferences,
            settings=settings,
        )
        _raise_for_outcome(outcome)
        return AgentResponse(
            result=AgentResult.model_validate(outcome.result),
            trace=outcome.trace,
        )

    @app.post("/api/pipeline", response_model=PipelineResponse)
    def run_pipeline_endpoint(request: PipelineRequest) -> PipelineResponse:
        if not request.input.strip():
            raise HTTPException(status_code=400, detail={"error": "Input is required"})

        outcome = run_pipeline(request.input, completion, settings=settings)
        _raise_for_outcome(outcome)
        return PipelineResponse(
            result=PipelineResult.model_validate(outcome.result),
            trace=outcome.trace,
        )

    logger.info(
        "graphchat API ready (model=%s, no_llm=%s, tracing=%s)",
        settings.model,
        settings.no_llm,
        is_tracing_enabled(),
    )
    return app
