"""Message store port - project conversation history and results."""

from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Author of a stored message."""

    USER = "USER"
    ASSISTANT = "ASSISTANT"


class MessageType(str, Enum):
    """Kind of stored message."""

    RESULT = "RESULT"
    ERROR = "ERROR"


class Fragment(BaseModel):
    """Generated result attached to an assistant message."""

    id: str
    sandbox_url: str
    title: str
    files: dict[str, str] = {}


class StoredMessage(BaseModel):
    """Persisted project message."""

    id: str
    project_id: str
    content: str
    role: MessageRole
    type: MessageType = MessageType.RESULT
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    fragment: Fragment | None = None


class FragmentInput(BaseModel):
    """Fragment payload for a new result message."""

    sandbox_url: str
    title: str
    files: dict[str, str] = {}


class MessageStore(Protocol):
    """Persistence collaborator used by the workflow."""

    def recent_messages(self, project_id: str, limit: int) -> list[StoredMessage]:
        """Most recent messages of a project, newest first."""
        ...

    def create_message(
        self,
        project_id: str,
        content: str,
        role: MessageRole,
        type: MessageType = MessageType.RESULT,
        fragment: FragmentInput | None = None,
    ) -> StoredMessage:
        """Atomically store one message (with optional fragment)."""
        ...
