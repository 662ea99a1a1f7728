"""Sandbox Port - remote execution environment (shell + virtual file system)."""

from collections.abc import Callable
from typing import Protocol

OutputCallback = Callable[[str], None]


class SandboxError(Exception):
    """Sandbox backend failure."""


class SandboxNotFoundError(SandboxError):
    """Sandbox id does not resolve to a live environment."""


class CommandExitError(SandboxError):
    """Command finished with a non-zero exit code."""

    def __init__(self, exit_code: int, stdout: str = "", stderr: str = "") -> None:
        super().__init__(f"exit code {exit_code}")
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class SandboxConnection(Protocol):
    """Live connection to one sandbox."""

    sandbox_id: str

    async def run_command(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: float | None = None,
    ) -> str:
        """Run a shell command, streaming output to callbacks.

        Returns full stdout. Raises CommandExitError on non-zero exit.
        """
        ...

    async def read_file(self, path: str) -> str:
        """Read a file from the sandbox file system."""
        ...

    async def write_file(self, path: str, content: str) -> None:
        """Create or overwrite a file in the sandbox file system."""
        ...

    def get_host(self, port: int) -> str:
        """Externally reachable host for a service listening on port."""
        ...


class SandboxProvider(Protocol):
    """Creates and resolves sandboxes."""

    async def create(self, template: str) -> str:
        """Provision a sandbox from template, return its id."""
        ...

    async def connect(self, sandbox_id: str) -> SandboxConnection:
        """Resolve an existing sandbox id to a live connection."""
        ...
