"""Agent network - LangGraph loop of agent turns driven by the router."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypedDict

import structlog
from langgraph.graph import END, START, StateGraph

from src.application.agent.agent import Agent
from src.application.workflow.steps import StepExecutor
from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow import HaltReason
from src.domain.entities.workflow_events import WorkflowEventType
from src.domain.ports.llm import LLMMessage
from src.domain.services.router import NetworkRouter

log = structlog.get_logger()


class NetworkGraphState(TypedDict):
    """Graph channels. `state` is the run's shared AgentState (same object throughout)."""

    state: AgentState
    iteration: int


@dataclass
class NetworkResult:
    """State at halt time plus how the loop ended."""

    state: AgentState
    iterations: int
    halt_reason: HaltReason


class AgentNetwork:
    """Repeatedly asks the router for the next agent and runs it until halt."""

    def __init__(self, name: str, agents: Sequence[Agent], router: NetworkRouter) -> None:
        if not agents:
            raise ValueError("network needs at least one agent")
        self.name = name
        self._agents = {a.name: a for a in agents}
        self._router = router

    def build_graph(self, steps: StepExecutor) -> StateGraph:
        """One node per agent; every edge goes through the router."""

        def route(graph_state: NetworkGraphState) -> str:
            decision = self._router.decide(graph_state["state"], graph_state["iteration"])
            if decision.halted:
                return END
            return decision.agent

        def agent_node(agent: Agent):
            async def node(graph_state: NetworkGraphState) -> dict:
                state = graph_state["state"]
                iteration = graph_state["iteration"]
                await agent.run(state, steps, iteration)
                return {"state": state, "iteration": iteration + 1}

            return node

        path_map = {name: name for name in self._agents}
        path_map[END] = END

        builder = StateGraph(NetworkGraphState)
        for name, agent in self._agents.items():
            builder.add_node(name, agent_node(agent))
            builder.add_conditional_edges(name, route, path_map=path_map)
        builder.add_conditional_edges(START, route, path_map=path_map)
        return builder

    async def run(self, input_text: str, state: AgentState, steps: StepExecutor) -> NetworkResult:
        """Append the user request and loop until the router halts."""
        state.add_message(LLMMessage(role="user", content=input_text))
        graph = self.build_graph(steps).compile()
        final = await graph.ainvoke(
            {"state": state, "iteration": 0},
            # Router ceiling ends the loop first; this only guards graph wiring bugs
            config={"recursion_limit": self._router.max_iterations + 5},
        )
        final_state: AgentState = final["state"]
        iterations: int = final["iteration"]
        decision = self._router.decide(final_state, iterations)
        halt_reason = decision.reason or HaltReason.MAX_ITERATIONS
        log.info(
            WorkflowEventType.NETWORK_HALTED.value,
            network=self.name,
            iterations=iterations,
            reason=halt_reason.value,
        )
        return NetworkResult(state=final_state, iterations=iterations, halt_reason=halt_reason)
