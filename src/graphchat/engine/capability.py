"""Text-completion capability: the only external I/O a node may perform."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class CapabilityError(Exception):
    """The completion backend failed to produce a response."""


class CapabilityTimeoutError(CapabilityError):
    """The completion backend did not answer within the per-call timeout."""


@runtime_checkable
class TextCompletion(Protocol):
    """Turn a prompt into a response string.

    Implementations may be slow and may raise ``CapabilityError``.
    ``timeout`` is the per-call limit in seconds; ``None`` leaves the
    backend default in place.
    """

    def complete(self, prompt: str, *, timeout: float | None = None) -> str: ...
