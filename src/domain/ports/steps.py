"""Step store port - write-once log of completed workflow steps."""

from datetime import datetime, timezone
from typing import Any, Protocol

from pydantic import BaseModel, Field


class StepRecord(BaseModel):
    """Result of a step that completed in a workflow run."""

    run_id: str
    name: str
    result: Any = None
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StepRecordExistsError(Exception):
    """A record for (run_id, name) was already written."""


class StepStore(Protocol):
    """Key-value log keyed by (run_id, step name)."""

    def get(self, run_id: str, name: str) -> StepRecord | None:
        """Return the completed record, or None if the step never completed."""
        ...

    def put(self, record: StepRecord) -> None:
        """Store a record. Raises StepRecordExistsError if the key exists."""
        ...
