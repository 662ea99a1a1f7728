"""Projects store - file-based projects and their messages (DI-friendly, no global singleton)."""

import json
import logging
import re
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from src.domain.ports.messages import (
    Fragment,
    FragmentInput,
    MessageRole,
    MessageType,
    StoredMessage,
)

logger = logging.getLogger(__name__)

PROJECTS_FILE = Path("output/projects.json")


class ProjectNotFoundError(LookupError):
    """No project with the given id."""


class Project(BaseModel):
    """Project: a named conversation with the coding agent."""

    id: str
    name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def slugify(value: str, max_words: int = 3) -> str:
    """Project name from the first words of a prompt, e.g. "landing-page-with"."""
    words = re.findall(r"[a-z0-9]+", value.lower())[:max_words]
    return "-".join(words) or "project"


class ProjectsStore:
    """Projects and messages in one JSON file; every write is one atomic replace.

    Implements the MessageStore port used by the workflow.
    """

    def __init__(self, projects_file: Path | None = None):
        """Initialize store; load from file if present."""
        self._file = projects_file or PROJECTS_FILE
        self._projects: dict[str, Project] = {}
        self._messages: list[StoredMessage] = []
        self._lock = threading.RLock()
        self._load()

    def _load(self) -> None:
        """Load projects and messages from disk."""
        if not self._file.exists():
            return
        try:
            data = json.loads(self._file.read_text(encoding="utf-8"))
            for p_data in data.get("projects", []):
                proj = Project(**p_data)
                self._projects[proj.id] = proj
            self._messages = [StoredMessage(**m) for m in data.get("messages", [])]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Corrupted projects file %s: %s", self._file, e)
        except OSError as e:
            logger.warning("Cannot read projects file %s: %s", self._file, e)

    def _save(self) -> None:
        """Persist to disk: temp file then atomic rename."""
        self._file.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "projects": [p.model_dump(mode="json") for p in self._projects.values()],
            "messages": [m.model_dump(mode="json") for m in self._messages],
        }
        tmp_file = self._file.with_suffix(".tmp")
        try:
            tmp_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp_file.replace(self._file)
        except OSError:
            logger.error("Failed to save projects to %s", self._file, exc_info=True)
            tmp_file.unlink(missing_ok=True)
            raise

    def list_projects(self) -> list[Project]:
        """All projects, newest first."""
        with self._lock:
            return sorted(self._projects.values(), key=lambda p: p.created_at, reverse=True)

    def get_project(self, project_id: str) -> Project | None:
        """Get project by id."""
        return self._projects.get(project_id)

    def create_project(self, value: str) -> tuple[Project, StoredMessage]:
        """New project named after the prompt, with the prompt as first USER message."""
        with self._lock:
            project = Project(id=str(uuid.uuid4()), name=slugify(value))
            message = StoredMessage(
                id=str(uuid.uuid4()),
                project_id=project.id,
                content=value,
                role=MessageRole.USER,
                type=MessageType.RESULT,
            )
            self._projects[project.id] = project
            self._messages.append(message)
            try:
                self._save()
            except OSError:
                del self._projects[project.id]
                self._messages.pop()
                raise
            return project, message

    def create_message(
        self,
        project_id: str,
        content: str,
        role: MessageRole,
        type: MessageType = MessageType.RESULT,
        fragment: FragmentInput | None = None,
    ) -> StoredMessage:
        """Store one message and its optional fragment in a single write."""
        with self._lock:
            if project_id not in self._projects:
                raise ProjectNotFoundError(project_id)
            message = StoredMessage(
                id=str(uuid.uuid4()),
                project_id=project_id,
                content=content,
                role=role,
                type=type,
                fragment=Fragment(id=str(uuid.uuid4()), **fragment.model_dump()) if fragment else None,
            )
            self._messages.append(message)
            try:
                self._save()
            except OSError:
                self._messages.pop()
                raise
            return message

    def list_messages(self, project_id: str) -> list[StoredMessage]:
        """Project messages, oldest first."""
        with self._lock:
            return [m for m in self._messages if m.project_id == project_id]

    def recent_messages(self, project_id: str, limit: int) -> list[StoredMessage]:
        """The `limit` most recent project messages, newest first."""
        messages = self.list_messages(project_id)
        return list(reversed(messages))[:limit]
