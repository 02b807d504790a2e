"""Completion stubs shared by the test modules."""

from __future__ import annotations

from collections.abc import Callable


class ScriptedCompletion:
    """Completion stub answering by prompt prefix, echoing anything unscripted."""

    def __init__(self, responses: dict[str, str] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[str] = []
        self.timeouts: list[float | None] = []

    def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        self.calls.append(prompt)
        self.timeouts.append(timeout)
        for prefix, response in self.responses.items():
            if prompt.startswith(prefix):
                return response
        return prompt


class FailingCompletion:
    """Completion stub that always raises the given exception."""

    def __init__(self, exc_factory: Callable[[], Exception]) -> None:
        self.exc_factory = exc_factory
        self.calls = 0

    def complete(self, prompt: str, *, timeout: float | None = None) -> str:
        self.calls += 1
        raise self.exc_factory()
