"""Workflow application layer: steps, sandbox client, finalizer, code-agent workflow."""
