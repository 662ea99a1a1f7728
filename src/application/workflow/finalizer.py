"""Finalizer - post-loop title/response generation, classification, single write."""

import structlog

from src.application.agent.agent import Agent, parse_agent_output
from src.application.agent.prompts import FRAGMENT_TITLE_FALLBACK, RESPONSE_FALLBACK
from src.application.workflow.sandbox_client import SandboxClient, SandboxHandle
from src.application.workflow.steps import StepExecutor
from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow import Outcome, OutcomeKind
from src.domain.entities.workflow_events import WorkflowEventType
from src.domain.ports.messages import FragmentInput, MessageRole, MessageStore, MessageType
from src.domain.services.outcome import classify_outcome

log = structlog.get_logger()

SAVE_STEP = "save-result"
ERROR_MESSAGE = "Something went wrong. Please try again."


class Finalizer:
    """Turns the halted network state into one persisted Outcome."""

    def __init__(
        self,
        title_agent: Agent,
        response_agent: Agent,
        sandbox: SandboxClient,
        messages: MessageStore,
        preview_port: int = 3000,
    ) -> None:
        self._title_agent = title_agent
        self._response_agent = response_agent
        self._sandbox = sandbox
        self._messages = messages
        self._preview_port = preview_port

    async def finalize(
        self,
        project_id: str,
        state: AgentState,
        handle: SandboxHandle,
        steps: StepExecutor,
    ) -> Outcome:
        """Generate title and response, classify, resolve the URL, save once."""
        title_output = await self._title_agent.run_once(state.summary, steps)
        response_output = await self._response_agent.run_once(state.summary, steps)

        kind = classify_outcome(state.summary, state.files)
        sandbox_url = await self._sandbox.resolve_url(handle, self._preview_port)

        outcome = Outcome(
            kind=kind,
            files=dict(state.files),
            summary=state.summary,
            title=parse_agent_output(title_output, FRAGMENT_TITLE_FALLBACK),
            response_text=parse_agent_output(response_output, RESPONSE_FALLBACK),
            sandbox_url=sandbox_url,
        )
        outcome.message_id = await steps.run(SAVE_STEP, lambda: self._save(project_id, outcome))
        log.info(
            WorkflowEventType.OUTCOME_SAVED.value,
            kind=kind.value,
            files=len(outcome.files),
            message_id=outcome.message_id,
        )
        return outcome

    def _save(self, project_id: str, outcome: Outcome) -> str:
        """The run's only persistence write. Returns the stored message id."""
        if outcome.kind is OutcomeKind.ERROR:
            message = self._messages.create_message(
                project_id=project_id,
                content=ERROR_MESSAGE,
                role=MessageRole.ASSISTANT,
                type=MessageType.ERROR,
            )
        else:
            message = self._messages.create_message(
                project_id=project_id,
                content=outcome.response_text,
                role=MessageRole.ASSISTANT,
                type=MessageType.RESULT,
                fragment=FragmentInput(
                    sandbox_url=outcome.sandbox_url,
                    title=outcome.title,
                    files=outcome.files,
                ),
            )
        return message.id
