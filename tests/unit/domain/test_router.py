"""Tests for NetworkRouter."""

import pytest

from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow import HaltReason
from src.domain.services.router import NetworkRouter


class TestNetworkRouter:
    """Routing rule: ceiling first, then summary, else the default agent."""

    @pytest.fixture
    def router(self):
        return NetworkRouter(default_agent="code-agent")

    def test_routes_to_default_agent_without_summary(self, router):
        decision = router.decide(AgentState(), iteration=0)
        assert decision.agent == "code-agent"
        assert not decision.halted
        assert decision.reason is None

    def test_halts_when_summary_present(self, router):
        decision = router.decide(AgentState(summary="Built a page"), iteration=3)
        assert decision.halted
        assert decision.reason == HaltReason.SUMMARY

    def test_halts_at_ceiling(self, router):
        decision = router.decide(AgentState(), iteration=15)
        assert decision.halted
        assert decision.reason == HaltReason.MAX_ITERATIONS

    def test_last_turn_below_ceiling_still_routes(self, router):
        assert router.decide(AgentState(), iteration=14).agent == "code-agent"

    def test_ceiling_checked_before_summary(self, router):
        decision = router.decide(AgentState(summary="done"), iteration=15)
        assert decision.reason == HaltReason.MAX_ITERATIONS

    def test_files_do_not_affect_routing(self, router):
        state = AgentState(files={"app/page.tsx": "x"})
        assert router.decide(state, iteration=2).agent == "code-agent"

    def test_default_ceiling_is_15(self, router):
        assert router.max_iterations == 15

    def test_custom_ceiling(self):
        router = NetworkRouter(default_agent="a", max_iterations=2)
        assert router.decide(AgentState(), 1).agent == "a"
        assert router.decide(AgentState(), 2).halted

    def test_invalid_ceiling_rejected(self):
        with pytest.raises(ValueError):
            NetworkRouter(default_agent="a", max_iterations=0)
