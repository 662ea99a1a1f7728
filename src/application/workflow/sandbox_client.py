"""Sandbox client - step-aware facade over a SandboxProvider."""

import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from src.application.workflow.steps import NonRetriableError, StepError, StepExecutor
from src.domain.ports.sandbox import CommandExitError, SandboxConnection, SandboxProvider

logger = logging.getLogger(__name__)

CREATE_STEP = "get-sandbox-id"
URL_STEP = "get-sandbox-url"


class SandboxHandle(BaseModel):
    """Opaque reference to the run's sandbox."""

    model_config = ConfigDict(frozen=True)

    sandbox_id: str


class SandboxProvisioningError(NonRetriableError):
    """The run could not obtain a sandbox."""


@dataclass
class CommandOutput:
    """Result of a sandbox command. `error` holds the diagnostic on failure."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def as_text(self) -> str:
        """Text relayed back into the conversation."""
        return self.error if self.error is not None else self.stdout


class SandboxClient:
    """Sandbox operations for one workflow run."""

    def __init__(
        self,
        provider: SandboxProvider,
        steps: StepExecutor,
        command_timeout: float | None = None,
        url_scheme: str = "https",
    ) -> None:
        self._provider = provider
        self._steps = steps
        self._command_timeout = command_timeout
        self._url_scheme = url_scheme

    async def create(self, template: str) -> SandboxHandle:
        """Provision the run's sandbox once; a resumed run reuses it."""
        try:
            sandbox_id = await self._steps.run(CREATE_STEP, lambda: self._provider.create(template))
        except StepError as e:
            raise SandboxProvisioningError(f"Could not create sandbox from '{template}': {e.cause}") from e
        return SandboxHandle(sandbox_id=sandbox_id)

    async def resolve(self, handle: SandboxHandle) -> SandboxConnection:
        """Live connection; resolved on every use, never memoized."""
        return await self._provider.connect(handle.sandbox_id)

    async def run_command(self, handle: SandboxHandle, command: str) -> CommandOutput:
        """Run a command. Failures come back as a diagnostic, never raised."""
        buffers = {"stdout": "", "stderr": ""}

        def on_stdout(data: str) -> None:
            buffers["stdout"] += data

        def on_stderr(data: str) -> None:
            buffers["stderr"] += data

        try:
            connection = await self.resolve(handle)
            stdout = await connection.run_command(
                command,
                on_stdout=on_stdout,
                on_stderr=on_stderr,
                timeout=self._command_timeout,
            )
            return CommandOutput(stdout=stdout, stderr=buffers["stderr"])
        except Exception as e:
            diagnostic = f"Command failed: {e}\nstdout: {buffers['stdout']}\nstderr: {buffers['stderr']}"
            logger.warning("Sandbox command failed: %s: %s", command, e)
            return CommandOutput(
                stdout=buffers["stdout"],
                stderr=buffers["stderr"],
                exit_code=e.exit_code if isinstance(e, CommandExitError) else -1,
                error=diagnostic,
            )

    async def write_file(self, handle: SandboxHandle, path: str, content: str) -> None:
        """Write a file into the sandbox."""
        connection = await self.resolve(handle)
        await connection.write_file(path, content)

    async def read_file(self, handle: SandboxHandle, path: str) -> str:
        """Read a file from the sandbox."""
        connection = await self.resolve(handle)
        return await connection.read_file(path)

    async def resolve_url(self, handle: SandboxHandle, port: int) -> str:
        """Public URL of a service in the sandbox (memoized)."""

        async def _url() -> str:
            connection = await self.resolve(handle)
            return f"{self._url_scheme}://{connection.get_host(port)}"

        return await self._steps.run(URL_STEP, _url)
