"""Tests for outcome classification and shared state."""

from src.domain.entities.agent_state import AgentState
from src.domain.entities.workflow import OutcomeKind
from src.domain.ports.llm import LLMMessage
from src.domain.services.outcome import classify_outcome


class TestClassifyOutcome:
    """Success needs both a summary and files."""

    def test_success(self):
        assert classify_outcome("Built it", {"a.txt": "x"}) == OutcomeKind.SUCCESS

    def test_empty_summary_is_error(self):
        assert classify_outcome("", {"a.txt": "x"}) == OutcomeKind.ERROR

    def test_empty_files_is_error(self):
        assert classify_outcome("Built it", {}) == OutcomeKind.ERROR

    def test_both_empty_is_error(self):
        assert classify_outcome("", {}) == OutcomeKind.ERROR


class TestAgentState:
    """Merge and message helpers."""

    def test_merge_files_adds_and_overwrites(self):
        state = AgentState(files={"a": "1", "b": "2"})
        state.merge_files({"b": "3", "c": "4"})
        assert state.files == {"a": "1", "b": "3", "c": "4"}

    def test_merge_never_removes(self):
        state = AgentState(files={"a": "1"})
        state.merge_files({})
        assert state.files == {"a": "1"}

    def test_add_message_keeps_order(self):
        state = AgentState()
        state.add_message(LLMMessage(role="user", content="hi"))
        state.add_message(LLMMessage(role="assistant", content="first"))
        state.add_message(LLMMessage(role="tool", content="out"))
        assert [m.role for m in state.messages] == ["user", "assistant", "tool"]

    def test_instances_do_not_share_defaults(self):
        a, b = AgentState(), AgentState()
        a.add_message(LLMMessage(role="user", content="x"))
        a.merge_files({"f": "1"})
        assert b.messages == []
        assert b.files == {}
