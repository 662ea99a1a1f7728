"""Tests for task summary marker extraction."""

from src.domain.services.task_summary import extract_task_summary


class TestExtractTaskSummary:
    """<task_summary>...</task_summary> parsing."""

    def test_extracts_inner_text(self):
        text = "All done.\n<task_summary>\nCreated a landing page.\n</task_summary>"
        assert extract_task_summary(text) == "Created a landing page."

    def test_no_marker(self):
        assert extract_task_summary("Still working on it") is None

    def test_empty_and_none(self):
        assert extract_task_summary("") is None
        assert extract_task_summary(None) is None

    def test_unclosed_marker_ignored(self):
        assert extract_task_summary("<task_summary>Half a summary") is None

    def test_empty_marker_ignored(self):
        assert extract_task_summary("<task_summary>   </task_summary>") is None

    def test_first_marker_wins(self):
        text = "<task_summary>one</task_summary> <task_summary>two</task_summary>"
        assert extract_task_summary(text) == "one"

    def test_multiline_summary(self):
        text = "<task_summary>line 1\nline 2</task_summary>"
        assert extract_task_summary(text) == "line 1\nline 2"
