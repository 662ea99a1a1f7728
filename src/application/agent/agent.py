"""Agent - a (prompt, model, tools, response hook) unit producing one turn."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import structlog

from src.application.agent.tools import ToolCallContext, ToolDefinition, invoke_tool
from src.application.workflow.steps import StepExecutor
from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow_events import WorkflowEventType
from src.domain.ports.llm import Completion, LLMMessage, LLMPort
from src.domain.services.task_summary import extract_task_summary

log = structlog.get_logger()


@dataclass(frozen=True)
class ModelSettings:
    """Model choice for one agent."""

    model: str | None = None
    temperature: float = 0.1


@dataclass
class ToolResult:
    """Output of one tool call within a turn."""

    tool: str
    call_id: str
    output: str


@dataclass
class AgentResult:
    """One agent turn: the model response and the tool results it produced."""

    agent: str
    completion: Completion
    tool_results: list[ToolResult] = field(default_factory=list)

    @property
    def text(self) -> str:
        return self.completion.text


ResponseHook = Callable[[AgentResult, AgentState], None]


def capture_task_summary(result: AgentResult, state: AgentState) -> None:
    """Store the task summary when the latest assistant text carries the marker."""
    summary = extract_task_summary(result.text)
    if summary:
        state.summary = summary


def parse_agent_output(text: str | None, fallback: str) -> str:
    """Trimmed single-shot output, or fallback when the model returned nothing."""
    cleaned = (text or "").strip()
    return cleaned or fallback


class Agent:
    """Consumes the conversation and produces exactly one response per run."""

    def __init__(
        self,
        name: str,
        system_prompt: str,
        llm: LLMPort,
        model: ModelSettings | None = None,
        tools: Sequence[ToolDefinition] = (),
        on_response: ResponseHook | None = None,
        description: str = "",
    ) -> None:
        self.name = name
        self.description = description
        self._system_prompt = system_prompt
        self._llm = llm
        self._model = model or ModelSettings()
        self._tools = {t.name: t for t in tools}
        self._on_response = on_response

    @property
    def tools(self) -> dict[str, ToolDefinition]:
        return dict(self._tools)

    async def _infer(self, messages: list[LLMMessage], steps: StepExecutor, turn: int) -> Completion:
        """Model call, memoized so a resumed run does not re-ask the model."""
        tool_schemas = [t.json_schema() for t in self._tools.values()] or None

        async def _call() -> dict:
            completion = await self._llm.complete(
                system_prompt=self._system_prompt,
                messages=messages,
                tools=tool_schemas,
                model=self._model.model,
                temperature=self._model.temperature,
            )
            return completion.model_dump()

        raw = await steps.run(f"{self.name}:inference:{turn}", _call)
        return Completion.model_validate(raw)

    async def run(self, state: AgentState, steps: StepExecutor, turn: int) -> AgentResult:
        """Run one turn: infer, dispatch tool calls in order, then the response hook."""
        completion = await self._infer(list(state.messages), steps, turn)
        state.add_message(
            LLMMessage(role="assistant", content=completion.text, tool_calls=completion.tool_calls)
        )
        log.info(
            WorkflowEventType.AGENT_TURN.value,
            agent=self.name,
            turn=turn,
            tool_calls=[tc.name for tc in completion.tool_calls],
        )

        result = AgentResult(agent=self.name, completion=completion)
        for index, call in enumerate(completion.tool_calls):
            ctx = ToolCallContext(
                state=state,
                steps=steps,
                step_name=f"{self.name}:{turn}:{call.name}:{index}",
            )
            output = await invoke_tool(self._tools, call.name, call.arguments, ctx)
            log.info(WorkflowEventType.TOOL_CALL.value, agent=self.name, tool=call.name, turn=turn)
            result.tool_results.append(ToolResult(tool=call.name, call_id=call.id, output=output))
            state.add_message(LLMMessage(role="tool", content=output, tool_call_id=call.id or None))

        if self._on_response:
            self._on_response(result, state)
        return result

    async def run_once(self, text: str, steps: StepExecutor) -> str:
        """Single-shot generation from one input text; no tools, no state."""
        completion = await self._infer([LLMMessage(role="user", content=text)], steps, 0)
        return completion.text
