"""Command-line interface for graphchat."""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

import click

from graphchat import __version__
from graphchat.core.config import LOG_LEVELS, load_settings
from graphchat.core.env import load_environment
from graphchat.core.logging import setup_logging
from graphchat.engine import CancellationToken
from graphchat.llm.openai_client import create_completion
from graphchat.observability.opik_client import configure_opik
from graphchat.workflows.agent import build_agent_graph
from graphchat.workflows.pipeline import build_pipeline_graph
from graphchat.workflows.runner import RunOutcome, run_agent, run_pipeline

logger = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_CANCELLED = 130


def _parse_preferences(pairs: Sequence[str]) -> dict[str, str]:
    preferences: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--preference")
        preferences[key.strip()] = value.strip()
    return preferences


def _run_cancellable(run: Callable[[CancellationToken], RunOutcome]) -> RunOutcome:
    """Run in a worker thread so Ctrl-C cancels between steps instead of killing mid-call."""
    token = CancellationToken()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(run, token)
        try:
            return future.result()
        except KeyboardInterrupt:
            click.echo("Cancelling after the current step...", err=True)
            token.cancel()
            return future.result()


def _echo_outcome(outcome: RunOutcome, mode: str) -> None:
    result = outcome.result
    if outcome.status == "CANCELLED":
        click.echo("Run cancelled.")
        return
    if outcome.error is not None:
        click.echo(
            f"Error ({outcome.error.hint}): {outcome.error.message}",
            err=True,
        )
        return

    if mode == "pipeline":
        click.echo(result.get("final_answer", ""))
        return

    if result.get("needs_clarification"):
        click.echo(result.get("clarification_question", ""))
        return
    for step in result.get("plan", []):
        click.echo(f"- {step}")
    click.echo("")
    click.echo(result.get("final_result", ""))


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """graphchat: chat workflows driven by a graph-based orchestration engine."""


@cli.command()
@click.argument("text")
@click.option(
    "--mode",
    default="agent",
    type=click.Choice(["agent", "pipeline"], case_sensitive=False),
    help="Workflow to run (default: agent)",
)
@click.option(
    "--preference",
    "preferences",
    multiple=True,
    help="User preference as KEY=VALUE (agent mode, repeatable)",
)
@click.option("--no-llm", is_flag=True, default=False, help="Answer with the offline echo backend")
@click.option("--no-tracing", is_flag=True, default=False, help="Disable tracing for this run only")
@click.option("--step-budget", type=int, default=None, help="Maximum node executions for this run")
@click.option("--json", "json_output", is_flag=True, default=False, help="Print the outcome as JSON")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (default: GRAPHCHAT_LOG_LEVEL, else WARNING)",
)
def ask(
    text: str,
    mode: str,
    preferences: tuple[str, ...],
    no_llm: bool,
    no_tracing: bool,
    step_budget: int | None,
    json_output: bool,
    log_level: str | None,
) -> None:
    """Run one request through a workflow and print the answer."""
    if not text.strip():
        raise click.BadParameter("input cannot be empty", param_hint="TEXT")
    load_environment()

    try:
        settings = load_settings()
        setup_logging(level=log_level or settings.log_level or "WARNING")
        if no_tracing:
            os.environ["OPIK_TRACK_DISABLE"] = "true"
        configure_opik()
        updates: dict[str, object] = {}
        if no_llm:
            updates["no_llm"] = True
        if step_budget is not None:
            updates["step_budget"] = step_budget
        if updates:
            settings = settings.model_validate({**settings.model_dump(), **updates})
        completion = create_completion(settings)
        parsed_preferences = _parse_preferences(preferences)

        if mode.lower() == "pipeline":
            outcome = _run_cancellable(
                lambda token: run_pipeline(text, completion, settings=settings, cancel_token=token)
            )
        else:
            outcome = _run_cancellable(
                lambda token: run_agent(
                    text,
                    completion,
                    preferences=parsed_preferences,
                    settings=settings,
                    cancel_token=token,
                )
            )
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(EXIT_FAILED)

    if json_output:
        click.echo(outcome.model_dump_json(indent=2))
    else:
        _echo_outcome(outcome, mode.lower())

    if outcome.status == "CANCELLED":
        sys.exit(EXIT_CANCELLED)
    if outcome.status == "FAILED":
        sys.exit(EXIT_FAILED)


@cli.command()
@click.argument("name", type=click.Choice(["agent", "pipeline"], case_sensitive=False))
def graph(name: str) -> None:
    """Print the topology of a workflow graph as JSON."""
    compiled = build_agent_graph() if name.lower() == "agent" else build_pipeline_graph()
    click.echo(json.dumps(compiled.describe(), indent=2))


@cli.command()
@click.option("--host", default=None, help="Server host")
@click.option("--port", type=int, default=None, help="Server port")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level (default: GRAPHCHAT_LOG_LEVEL, else INFO)",
)
def serve(host: str | None, port: int | None, reload: bool, log_level: str | None) -> None:
    """Run the chat HTTP API."""
    load_environment()

    try:
        settings = load_settings()
        setup_logging(level=log_level or settings.log_level or "INFO")
        configure_opik()
        resolved_host = host if host is not None else settings.host
        resolved_port = port if port is not None else settings.port

        import uvicorn

        if reload:
            uvicorn.run(
                "graphchat.server.app:create_app",
                factory=True,
                host=resolved_host,
                port=resolved_port,
                reload=True,
            )
            return

        from graphchat.server.app import create_app

        uvicorn.run(create_app(settings), host=resolved_host, port=resolved_port)
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(EXIT_FAILED)
    except Exception as exc:
        logger.exception("Unexpected error during server execution: %s", exc)
        sys.exit(EXIT_FAILED)


def main(argv: Sequence[str] | None = None) -> None:
    """Console-script entry point."""
    cli.main(args=list(argv) if argv is not None else None, prog_name="graphchat")


if __name__ == "__main__":
    main()
