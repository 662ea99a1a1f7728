"""Code-agent workflow - one durable run per user request.

The run function is re-entered from the top on every retry. Everything with
side effects (sandbox provisioning, model calls, tool calls, the final write)
goes through the StepExecutor, so a re-entry only redoes work that never
completed.
"""

import structlog

from src.application.agent.agent import Agent, ModelSettings, capture_task_summary
from src.application.agent.prompts import (
    CODING_AGENT_PROMPT,
    FRAGMENT_TITLE_PROMPT,
    RESPONSE_PROMPT,
)
from src.application.agent.tools import build_sandbox_tools
from src.application.workflow.finalizer import Finalizer
from src.application.workflow.sandbox_client import SandboxClient, SandboxHandle
from src.application.workflow.steps import StepExecutor
from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow import CodeAgentEvent, Outcome
from src.domain.entities.workflow_events import WorkflowEventType
from src.domain.ports.config import AppConfig
from src.domain.ports.llm import LLMMessage, LLMPort
from src.domain.ports.messages import MessageRole, MessageStore
from src.domain.ports.sandbox import SandboxProvider
from src.domain.ports.steps import StepStore
from src.domain.services.router import NetworkRouter
from src.infrastructure.workflow import AgentNetwork

log = structlog.get_logger()

HISTORY_STEP = "get-previous-messages"
CODING_AGENT = "code-agent"
TITLE_AGENT = "fragment-title-agent"
RESPONSE_AGENT = "response-agent"


class CodeAgentWorkflow:
    """Sandbox + coding-agent network + finalizer for one project request."""

    def __init__(
        self,
        llm: LLMPort,
        sandbox_provider: SandboxProvider,
        messages: MessageStore,
        step_store: StepStore,
        config: AppConfig,
    ) -> None:
        self._llm = llm
        self._sandbox_provider = sandbox_provider
        self._messages = messages
        self._step_store = step_store
        self._config = config

    def _load_history(self, project_id: str) -> list[dict]:
        """Last N project messages, oldest first, as conversation messages."""
        recent = self._messages.recent_messages(project_id, self._config.agent.history_limit)
        history = [
            {
                "role": "assistant" if m.role is MessageRole.ASSISTANT else "user",
                "content": m.content,
            }
            for m in recent
        ]
        history.reverse()
        return history

    def build_coding_agent(self, sandbox: SandboxClient, handle: SandboxHandle) -> Agent:
        """Coding agent bound to this run's sandbox."""
        llm_config = self._config.llm
        return Agent(
            name=CODING_AGENT,
            description="A senior software engineer working in a sandboxed Next.js environment",
            system_prompt=CODING_AGENT_PROMPT,
            llm=self._llm,
            model=ModelSettings(model=llm_config.model, temperature=llm_config.temperature),
            tools=build_sandbox_tools(sandbox, handle),
            on_response=capture_task_summary,
        )

    def build_finalizer(self, sandbox: SandboxClient) -> Finalizer:
        """Title/response generators on the summary model."""
        summary_model = ModelSettings(model=self._config.llm.summary_model, temperature=0.3)
        return Finalizer(
            title_agent=Agent(
                name=TITLE_AGENT,
                description="A clean fragment title generator",
                system_prompt=FRAGMENT_TITLE_PROMPT,
                llm=self._llm,
                model=summary_model,
            ),
            response_agent=Agent(
                name=RESPONSE_AGENT,
                description="A response generator",
                system_prompt=RESPONSE_PROMPT,
                llm=self._llm,
                model=summary_model,
            ),
            sandbox=sandbox,
            messages=self._messages,
            preview_port=self._config.sandbox.preview_port,
        )

    async def run(self, event: CodeAgentEvent, run_id: str) -> Outcome:
        """Execute (or resume) the run identified by run_id."""
        steps = StepExecutor(run_id, self._step_store)
        sandbox_config = self._config.sandbox
        sandbox = SandboxClient(
            self._sandbox_provider,
            steps,
            command_timeout=sandbox_config.command_timeout,
            url_scheme=sandbox_config.preview_url_scheme(),
        )

        with structlog.contextvars.bound_contextvars(run_id=run_id, project_id=event.project_id):
            log.info(WorkflowEventType.RUN_STARTED.value)
            handle = await sandbox.create(sandbox_config.template)
            log.info(WorkflowEventType.SANDBOX_READY.value, sandbox_id=handle.sandbox_id)

            history = await steps.run(HISTORY_STEP, lambda: self._load_history(event.project_id))
            state = AgentState(messages=[LLMMessage.model_validate(m) for m in history])

            coding_agent = self.build_coding_agent(sandbox, handle)
            network = AgentNetwork(
                name="coding-agent-network",
                agents=[coding_agent],
                router=NetworkRouter(
                    default_agent=coding_agent.name,
                    max_iterations=self._config.agent.max_iterations,
                ),
            )
            result = await network.run(event.value, state, steps)

            return await self.build_finalizer(sandbox).finalize(
                event.project_id,
                result.state,
                handle,
                steps,
            )
