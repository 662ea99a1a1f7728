"""Outcome classification for finished runs."""

from src.domain.entities.workflow import OutcomeKind


def classify_outcome(summary: str, files: dict[str, str]) -> OutcomeKind:
    """A run succeeds only with both a summary and at least one file."""
    if not summary or not files:
        return OutcomeKind.ERROR
    return OutcomeKind.SUCCESS
