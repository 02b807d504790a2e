"""graphchat: a chat demo driven by a small graph-based orchestration engine."""

__version__ = "0.1.0"
