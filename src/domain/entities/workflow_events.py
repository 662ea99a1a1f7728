"""Workflow event types emitted in structured logs."""

from enum import Enum


class WorkflowEventType(str, Enum):
    """Lifecycle events of one workflow run."""

    RUN_STARTED = "run_started"
    SANDBOX_READY = "sandbox_ready"
    AGENT_TURN = "agent_turn"
    TOOL_CALL = "tool_call"
    NETWORK_HALTED = "network_halted"
    OUTCOME_SAVED = "outcome_saved"
    RUN_FAILED = "run_failed"
