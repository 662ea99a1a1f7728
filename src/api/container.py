"""Dependency Injection Container - centralized service management."""

from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING

from src.api.store import ProjectsStore
from src.domain.ports.config import AppConfig
from src.domain.ports.llm import LLMPort
from src.domain.ports.sandbox import SandboxProvider
from src.infrastructure.config import load_config
from src.infrastructure.persistence.job_store import FileJobStore
from src.infrastructure.persistence.step_store import FileStepStore

if TYPE_CHECKING:
    from src.application.jobs.dispatcher import JobDispatcher
    from src.application.workflow.use_case import CodeAgentWorkflow


class Container:
    """Dependency Injection Container with lazy initialization.

    All dependencies are created on first access and cached.

    Usage:
        container = Container()
        dispatcher = container.dispatcher
    """

    def __init__(self, config: AppConfig | None = None):
        """Initialize container with optional config override."""
        self._config_override = config

    @cached_property
    def config(self) -> AppConfig:
        """Application configuration."""
        if self._config_override:
            return self._config_override
        return load_config()

    @cached_property
    def llm(self) -> LLMPort:
        """OpenAI-compatible adapter with transport retries."""
        from src.infrastructure.llm import OpenAICompatibleAdapter, RetryingLLM

        return RetryingLLM(OpenAICompatibleAdapter(self.config.llm))

    @cached_property
    def sandbox_provider(self) -> SandboxProvider:
        """Sandbox backend selected by config.sandbox.provider."""
        from src.infrastructure.sandbox import create_sandbox_provider

        return create_sandbox_provider(self.config)

    @cached_property
    def step_store(self) -> FileStepStore:
        """Durable step log for workflow runs."""
        return FileStepStore(output_dir=self.config.persistence.output_dir)

    @cached_property
    def job_store(self) -> FileJobStore:
        """Durable job records."""
        return FileJobStore(output_dir=self.config.persistence.output_dir)

    @cached_property
    def projects_store(self) -> ProjectsStore:
        """Projects and messages."""
        return ProjectsStore(Path(self.config.persistence.output_dir) / "projects.json")

    @cached_property
    def workflow(self) -> "CodeAgentWorkflow":
        """Code-agent workflow function."""
        from src.application.workflow.use_case import CodeAgentWorkflow

        return CodeAgentWorkflow(
            llm=self.llm,
            sandbox_provider=self.sandbox_provider,
            messages=self.projects_store,
            step_store=self.step_store,
            config=self.config,
        )

    @cached_property
    def dispatcher(self) -> "JobDispatcher":
        """Background job dispatcher for workflow runs."""
        from src.application.jobs.dispatcher import JobDispatcher

        return JobDispatcher(self.workflow, self.job_store, self.config.jobs)

    async def close(self) -> None:
        """Close network clients that were created."""
        for name in ("llm", "sandbox_provider"):
            resource = self.__dict__.get(name)
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

    def reset(self) -> None:
        """Reset all cached instances (useful for testing)."""
        for attr in list(self.__dict__.keys()):
            if not attr.startswith("_"):
                delattr(self, attr)


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get or create global container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    """Replace the global container (tests)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset global container (for testing)."""
    global _container
    if _container:
        _container.reset()
    _container = None
