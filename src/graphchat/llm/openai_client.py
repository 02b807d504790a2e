"""Text-completion backends: OpenAI chat completions and an offline echo."""

from __future__ import annotations

import logging
import os
from typing import Any

import openai
from openai import OpenAI

from graphchat.core.config import DEFAULT_MODEL, GraphChatSettings
from graphchat.engine.capability import CapabilityError, CapabilityTimeoutError, TextCompletion
from graphchat.observability.opik_client import opik_track, track_openai_client

logger = logging.getLogger(__name__)


class OpenAICompletion:
    """Completion capability backed by the OpenAI chat completions API."""

    def __init__(
        self,
        model: str | None = None,
        temperature: float = 0.7,
        timeout: float = 60.0,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("GRAPHCHAT_OPENAI_MODEL") or DEFAULT_MODEL
        self.temperature = temperature
        self.timeout = timeout
        if client is None:
            # max_retries=0: retry policy belongs to the nodes, not the transport.
            client = OpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"), max_retries=0)
        self._client = track_openai_client(client)

    @opik_track(name="graphchat.complete")
    def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        """Send ``prompt`` as a single user message and return the reply text.

        Raises:
            CapabilityTimeoutError: If the request exceeds the timeout
            CapabilityError: For any other API failure or an empty reply
        """
        try:
            completion = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except openai.APITimeoutError as exc:
            raise CapabilityTimeoutError(f"OpenAI request timed out ({self.model})") from exc
        except openai.OpenAIError as exc:
            raise CapabilityError(f"OpenAI request failed: {exc}") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise CapabilityError("OpenAI returned an empty completion")
        return content


class EchoCompletion:
    """Offline capability that answers every prompt with the prompt itself."""

    def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        return prompt


def create_completion(settings: GraphChatSettings) -> TextCompletion:
    """Pick the completion backend for the current settings."""
    if settings.no_llm:
        logger.info("LLM disabled; using echo completion")
        return EchoCompletion()
    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("OPENAI_API_KEY not configured; using echo completion")
        return EchoCompletion()
    return OpenAICompletion(
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.call_timeout_seconds,
    )
