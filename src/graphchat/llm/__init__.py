"""Text-completion backends."""

from graphchat.llm.openai_client import EchoCompletion, OpenAICompletion, create_completion

__all__ = ["EchoCompletion", "OpenAICompletion", "create_completion"]
