"""Workflow DTOs."""

from pydantic import BaseModel, Field

from src.domain.ports.jobs import JobRecord
from src.domain.ports.messages import StoredMessage


class PromptRequest(BaseModel):
    """User request that starts a code-agent run."""

    value: str = Field(..., min_length=1, max_length=10_000)


class TriggeredRun(BaseModel):
    """Response to a prompt: the stored USER message and the job it triggered."""

    project_id: str
    message: StoredMessage
    job_id: str


class JobResponse(BaseModel):
    """Job status as exposed over HTTP."""

    id: str
    name: str
    status: str
    attempts: int
    error: str | None = None
    output: dict | None = None

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobResponse":
        return cls(
            id=record.id,
            name=record.name,
            status=record.status.value,
            attempts=record.attempts,
            error=record.error,
            output=record.output,
        )
