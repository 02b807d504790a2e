"""Chat message value type carried on the ``messages`` channel."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Literal

Role = Literal["human", "assistant"]


@dataclass(frozen=True)
class Message:
    """One chat turn."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def human(content: str) -> Message:
    return Message(role="human", content=content)


def assistant(content: str) -> Message:
    return Message(role="assistant", content=content)


def last_human_content(messages: Sequence[Message]) -> str:
    """Content of the most recent human message, or an empty string."""
    for message in reversed(messages):
        if message.role == "human":
            return message.content
    return ""
