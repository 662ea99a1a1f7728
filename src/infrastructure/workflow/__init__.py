"""Agent network - LangGraph."""

from src.infrastructure.workflow.network import AgentNetwork, NetworkResult

__all__ = ["AgentNetwork", "NetworkResult"]
