"""Local sandbox - one working directory per sandbox, commands via the host shell.

For development only. Commands run with the server's privileges, so they are
checked against a whitelist first; use the remote provider for untrusted
workloads.
"""

import asyncio
import codecs
import json
import logging
import shutil
import uuid
from pathlib import Path

from src.domain.ports.sandbox import (
    CommandExitError,
    OutputCallback,
    SandboxError,
    SandboxNotFoundError,
)

logger = logging.getLogger(__name__)

META_FILE = ".sandbox.json"
READ_CHUNK = 65536

# Allowed commands (whitelist)
ALLOWED_COMMANDS = {
    "node",
    "npm",
    "npx",
    "ls",
    "cat",
    "head",
    "tail",
    "grep",
    "find",
    "wc",
    "echo",
    "pwd",
    "mkdir",
    "rm",
    "cp",
    "mv",
    "touch",
    "sleep",
}

# Blocked patterns (security)
BLOCKED_PATTERNS = [
    "&&",
    "||",
    ";",
    "|",
    ">",
    "<",
    "`",
    "$",
    "eval",
    "exec",
    "sudo",
]


def validate_command(command: str) -> tuple[bool, str]:
    """Validate command against whitelist and blocked patterns.

    Returns:
        (is_valid, error_message)

    """
    if not command.strip():
        return False, "Empty command"
    for pattern in BLOCKED_PATTERNS:
        if pattern in command:
            return False, f"Blocked pattern: {pattern}"
    cmd_name = command.split()[0]
    if cmd_name not in ALLOWED_COMMANDS:
        return False, f"Command not allowed: {cmd_name}"
    return True, ""


class LocalSandbox:
    """Connection to a local sandbox directory."""

    def __init__(self, sandbox_id: str, root: Path, default_timeout: float = 300.0):
        self.sandbox_id = sandbox_id
        self._root = root.resolve()
        self._default_timeout = default_timeout

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        """Map a sandbox path onto the directory, rejecting traversal and symlink escape."""
        target = (self._root / path.lstrip("/")).resolve(strict=False)
        try:
            target.relative_to(self._root)
        except ValueError:
            raise SandboxError(f"Path outside sandbox: {path}") from None
        return target

    async def run_command(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: float | None = None,
    ) -> str:
        is_valid, error = validate_command(command)
        if not is_valid:
            logger.warning("Sandbox %s: rejected command %r: %s", self.sandbox_id, command, error)
            raise SandboxError(f"Command rejected: {error}")

        proc = await asyncio.create_subprocess_shell(
            command,
            cwd=self._root,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        async def pump(stream: asyncio.StreamReader, sink: list[str], callback: OutputCallback | None):
            # Fixed-size reads: output lines may be longer than the reader's line limit
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            while True:
                chunk = await stream.read(READ_CHUNK)
                text = decoder.decode(chunk, final=not chunk)
                if text:
                    sink.append(text)
                    if callback:
                        callback(text)
                if not chunk:
                    break

        stdout: list[str] = []
        stderr: list[str] = []
        cmd_timeout = timeout or self._default_timeout
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    pump(proc.stdout, stdout, on_stdout),
                    pump(proc.stderr, stderr, on_stderr),
                    proc.wait(),
                ),
                timeout=cmd_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Sandbox %s: command timed out after %ss: %s", self.sandbox_id, cmd_timeout, command)
            raise SandboxError(f"Command timed out after {cmd_timeout}s") from None
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

        out = "".join(stdout)
        if proc.returncode != 0:
            raise CommandExitError(proc.returncode or -1, stdout=out, stderr="".join(stderr))
        return out

    async def read_file(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise SandboxError(f"File not found: {path}")
        return target.read_text(encoding="utf-8")

    async def write_file(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def get_host(self, port: int) -> str:
        return f"localhost:{port}"


class LocalSandboxProvider:
    """Sandboxes as directories under <output_dir>/sandboxes, seeded from <templates_dir>/<template>."""

    def __init__(
        self,
        output_dir: str = "output",
        command_timeout: float = 300.0,
        templates_dir: str = "templates",
    ):
        self._base = Path(output_dir) / "sandboxes"
        self._templates = Path(templates_dir)
        self._command_timeout = command_timeout

    def _template_dir(self, template: str) -> Path:
        source = self._templates / template
        if not template.replace("-", "").replace("_", "").isalnum() or not source.is_dir():
            raise SandboxError(f"Unknown template: {template}")
        return source

    async def create(self, template: str) -> str:
        source = self._template_dir(template)
        sandbox_id = uuid.uuid4().hex
        root = self._base / sandbox_id
        self._base.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, root, ignore=shutil.ignore_patterns("node_modules", ".next"))
        (root / META_FILE).write_text(json.dumps({"template": template}), encoding="utf-8")
        logger.info("Created local sandbox %s from template %s", sandbox_id, template)
        return sandbox_id

    async def connect(self, sandbox_id: str) -> LocalSandbox:
        root = self._base / sandbox_id
        if not sandbox_id.isalnum() or not (root / META_FILE).is_file():
            raise SandboxNotFoundError(f"Sandbox not found: {sandbox_id}")
        return LocalSandbox(sandbox_id, root, default_timeout=self._command_timeout)
