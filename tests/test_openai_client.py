"""Tests for the text-completion backends."""

from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from graphchat.core.config import DEFAULT_MODEL, GraphChatSettings
from graphchat.engine import CapabilityError, CapabilityTimeoutError, TextCompletion
from graphchat.llm.openai_client import EchoCompletion, OpenAICompletion, create_completion

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class FakeCompletions:
    def __init__(self, content: str | None = "reply", error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.kwargs: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.kwargs.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions: FakeCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_complete_sends_single_user_message() -> None:
    completions = FakeCompletions("hello back")
    completion = OpenAICompletion(model="gpt-test", temperature=0.2, client=_client(completions))

    assert completion.complete("hello") == "hello back"
    call = completions.kwargs[0]
    assert call["model"] == "gpt-test"
    assert call["messages"] == [{"role": "user", "content": "hello"}]
    assert call["temperature"] == 0.2
    assert call["timeout"] == 60.0


def test_complete_uses_per_call_timeout() -> None:
    completions = FakeCompletions()
    completion = OpenAICompletion(client=_client(completions), timeout=30.0)

    completion.complete("hi", timeout=5.0)

    assert completions.kwargs[0]["timeout"] == 5.0


def test_default_model(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GRAPHCHAT_OPENAI_MODEL", raising=False)
    assert OpenAICompletion(client=_client(FakeCompletions())).model == DEFAULT_MODEL

    monkeypatch.setenv("GRAPHCHAT_OPENAI_MODEL", "gpt-from-env")
    assert OpenAICompletion(client=_client(FakeCompletions())).model == "gpt-from-env"


def test_timeout_maps_to_capability_timeout() -> None:
    completions = FakeCompletions(error=openai.APITimeoutError(request=_REQUEST))
    completion = OpenAICompletion(client=_client(completions))

    with pytest.raises(CapabilityTimeoutError):
        completion.complete("hi")
    assert len(completions.kwargs) == 1


def test_api_error_maps_to_capability_error() -> None:
    completions = FakeCompletions(error=openai.APIConnectionError(request=_REQUEST))
    completion = OpenAICompletion(client=_client(completions))

    with pytest.raises(CapabilityError, match="OpenAI request failed"):
        completion.complete("hi")


def test_empty_reply_is_capability_error() -> None:
    completion = OpenAICompletion(client=_client(FakeCompletions(content="")))

    with pytest.raises(CapabilityError, match="empty completion"):
        completion.complete("hi")


def test_echo_completion_returns_prompt() -> None:
    echo = EchoCompletion()

    assert echo.complete("same text") == "same text"
    assert isinstance(echo, TextCompletion)


def test_create_completion_falls_back_to_echo(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert isinstance(create_completion(GraphChatSettings()), EchoCompletion)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert isinstance(create_completion(GraphChatSettings(no_llm=True)), EchoCompletion)


def test_create_completion_uses_openai_with_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    completion = create_completion(GraphChatSettings(model="gpt-custom", call_timeout_seconds=12))

    assert isinstance(completion, OpenAICompletion)
    assert completion.model == "gpt-custom"
    assert completion.timeout == 12
