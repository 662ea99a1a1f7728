"""FastAPI dependencies - resolved from the DI container."""

from src.api.container import get_container
from src.api.store import ProjectsStore
from src.application.jobs.dispatcher import JobDispatcher
from src.domain.ports.config import AppConfig


def get_config() -> AppConfig:
    """Application config."""
    return get_container().config


def get_projects_store() -> ProjectsStore:
    """Projects and messages store."""
    return get_container().projects_store


def get_dispatcher() -> JobDispatcher:
    """Job dispatcher that runs the code-agent workflow."""
    return get_container().dispatcher
