"""Termination marker parsing."""

import re

TASK_SUMMARY_OPEN = "<task_summary>"
TASK_SUMMARY_CLOSE = "</task_summary>"

_TASK_SUMMARY_RE = re.compile(
    re.escape(TASK_SUMMARY_OPEN) + r"([\s\S]*?)" + re.escape(TASK_SUMMARY_CLOSE),
    re.IGNORECASE,
)


def extract_task_summary(text: str | None) -> str | None:
    """Return the summary wrapped in <task_summary>...</task_summary>.

    Unclosed markers and empty summaries are ignored (None), so the network
    keeps looping until a well-formed marker or the iteration ceiling.
    """
    if not text:
        return None
    match = _TASK_SUMMARY_RE.search(text)
    if not match:
        return None
    summary = match.group(1).strip()
    return summary or None
