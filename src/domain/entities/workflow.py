"""Workflow value types: trigger event, routing decision, outcome."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

CODE_AGENT_EVENT = "code-agent/run"


class CodeAgentEvent(BaseModel):
    """Payload of the code-agent job."""

    project_id: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1, max_length=10_000)


class HaltReason(str, Enum):
    """Why the router stopped the network."""

    SUMMARY = "summary"
    MAX_ITERATIONS = "max_iterations"


@dataclass(frozen=True)
class RoutingDecision:
    """Run `agent` next, or halt when agent is None."""

    agent: str | None
    reason: HaltReason | None = None

    @property
    def halted(self) -> bool:
        return self.agent is None


class OutcomeKind(str, Enum):
    """Classification of a finished run."""

    SUCCESS = "success"
    ERROR = "error"


class Outcome(BaseModel):
    """Final result of a workflow run, persisted exactly once."""

    kind: OutcomeKind
    files: dict[str, str] = {}
    summary: str = ""
    title: str = ""
    response_text: str = ""
    sandbox_url: str = ""
    message_id: str | None = None
