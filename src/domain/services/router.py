"""Network router - pick the next agent from shared state, or halt."""

from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow import HaltReason, RoutingDecision

DEFAULT_MAX_ITERATIONS = 15


class NetworkRouter:
    """Stateless routing rule with an iteration ceiling.

    The ceiling is checked before the summary so a run always stops after
    `max_iterations` agent turns, marker or not.
    """

    def __init__(self, default_agent: str, max_iterations: int = DEFAULT_MAX_ITERATIONS) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self._default_agent = default_agent
        self._max_iterations = max_iterations

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    def decide(self, state: AgentState, iteration: int) -> RoutingDecision:
        """Decide what runs after `iteration` completed agent turns."""
        if iteration >= self._max_iterations:
            return RoutingDecision(agent=None, reason=HaltReason.MAX_ITERATIONS)
        if state.summary:
            return RoutingDecision(agent=None, reason=HaltReason.SUMMARY)
        return RoutingDecision(agent=self._default_agent)
