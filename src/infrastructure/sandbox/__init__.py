"""Sandbox providers."""

from src.domain.ports.config import AppConfig
from src.domain.ports.sandbox import SandboxProvider
from src.infrastructure.sandbox.local import LocalSandbox, LocalSandboxProvider
from src.infrastructure.sandbox.remote import RemoteSandbox, RemoteSandboxProvider

__all__ = [
    "LocalSandbox",
    "LocalSandboxProvider",
    "RemoteSandbox",
    "RemoteSandboxProvider",
    "create_sandbox_provider",
]


def create_sandbox_provider(config: AppConfig) -> SandboxProvider:
    """Provider selected by sandbox.provider ("local" | "remote")."""
    sandbox = config.sandbox
    if sandbox.provider == "remote":
        return RemoteSandboxProvider(sandbox)
    if sandbox.provider == "local":
        return LocalSandboxProvider(
            config.persistence.output_dir,
            command_timeout=sandbox.command_timeout,
            templates_dir=sandbox.templates_dir,
        )
    raise ValueError(f"Unknown sandbox provider: {sandbox.provider}")
