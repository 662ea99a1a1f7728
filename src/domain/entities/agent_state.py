"""Shared mutable state of one workflow run."""

from pydantic import BaseModel

from src.domain.ports.llm import LLMMessage


class AgentState(BaseModel):
    """State visible to every agent and tool in one run.

    Passed by reference. `files` is written only by tool handlers, `summary`
    only by the coding agent's response hook.
    """

    summary: str = ""
    files: dict[str, str] = {}
    messages: list[LLMMessage] = []

    def merge_files(self, updates: dict[str, str]) -> None:
        """Add or overwrite files by path. Never removes paths."""
        self.files = {**self.files, **updates}

    def add_message(self, message: LLMMessage) -> None:
        """Append to the conversation."""
        self.messages.append(message)
