"""Job store port - durable record of triggered workflow jobs."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Lifecycle of a job."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobRecord(BaseModel):
    """One job invocation; its id is also the workflow run id."""

    id: str
    name: str
    data: dict[str, Any] = {}
    status: JobStatus = JobStatus.QUEUED
    attempts: int = 0
    error: str | None = None
    output: dict[str, Any] | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class JobStore(Protocol):
    """Persistence for job records."""

    def save(self, record: JobRecord) -> None:
        """Insert or replace a job record."""
        ...

    def get(self, job_id: str) -> JobRecord | None:
        """Load a job record by id."""
        ...

    def list_unfinished(self) -> list[JobRecord]:
        """Jobs that are queued or were running when the process stopped."""
        ...
