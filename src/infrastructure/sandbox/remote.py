"""Remote sandbox - REST client for a hosted sandbox service.

Contract:
    POST /sandboxes                      {"template"} -> {"sandbox_id"}
    GET  /sandboxes/{id}                 404 when the sandbox is gone
    POST /sandboxes/{id}/commands        {"command", "timeout"} -> NDJSON stream of
                                         {"type": "stdout"|"stderr", "data"} ... {"type": "exit", "exit_code"}
    GET  /sandboxes/{id}/files?path=     raw file content
    PUT  /sandboxes/{id}/files?path=     raw file content
"""

import json
import logging

import httpx

from src.domain.ports.config import SandboxConfig
from src.domain.ports.sandbox import (
    CommandExitError,
    OutputCallback,
    SandboxError,
    SandboxNotFoundError,
)

logger = logging.getLogger(__name__)


class RemoteSandbox:
    """Connection to one remote sandbox."""

    def __init__(self, sandbox_id: str, client: httpx.AsyncClient, config: SandboxConfig):
        self.sandbox_id = sandbox_id
        self._client = client
        self._config = config

    @property
    def _path(self) -> str:
        return f"/sandboxes/{self.sandbox_id}"

    async def run_command(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
        timeout: float | None = None,
    ) -> str:
        cmd_timeout = timeout or self._config.command_timeout
        stdout: list[str] = []
        stderr: list[str] = []
        exit_code: int | None = None
        try:
            async with self._client.stream(
                "POST",
                f"{self._path}/commands",
                json={"command": command, "timeout": cmd_timeout},
                timeout=httpx.Timeout(self._config.timeout, read=cmd_timeout + self._config.timeout),
            ) as resp:
                if resp.status_code == 404:
                    raise SandboxNotFoundError(f"Sandbox not found: {self.sandbox_id}")
                if resp.status_code >= 400:
                    body = (await resp.aread()).decode("utf-8", errors="replace")
                    raise SandboxError(f"Sandbox API error {resp.status_code}: {body[:200]}")
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        event = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug("Malformed command event: %s", line[:100])
                        continue
                    kind = event.get("type")
                    data = event.get("data", "")
                    if kind == "stdout":
                        stdout.append(data)
                        if on_stdout:
                            on_stdout(data)
                    elif kind == "stderr":
                        stderr.append(data)
                        if on_stderr:
                            on_stderr(data)
                    elif kind == "exit":
                        exit_code = int(event.get("exit_code", -1))
        except httpx.HTTPError as e:
            raise SandboxError(f"Sandbox request failed: {e}") from e

        out = "".join(stdout)
        if exit_code is None:
            raise SandboxError("Command stream ended without an exit status")
        if exit_code != 0:
            raise CommandExitError(exit_code, stdout=out, stderr="".join(stderr))
        return out

    async def read_file(self, path: str) -> str:
        resp = await self._request("GET", f"{self._path}/files", params={"path": path})
        return resp.text

    async def write_file(self, path: str, content: str) -> None:
        await self._request(
            "PUT",
            f"{self._path}/files",
            params={"path": path},
            content=content.encode("utf-8"),
        )

    def get_host(self, port: int) -> str:
        return f"{port}-{self.sandbox_id}.{self._config.domain}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise SandboxError(f"Sandbox request failed: {e}") from e
        if resp.status_code == 404 and url == self._path:
            raise SandboxNotFoundError(f"Sandbox not found: {self.sandbox_id}")
        if resp.status_code >= 400:
            raise SandboxError(f"Sandbox API error {resp.status_code}: {resp.text[:200]}")
        return resp


class RemoteSandboxProvider:
    """SandboxProvider over the hosted sandbox REST API."""

    def __init__(self, config: SandboxConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._config.api_key:
                headers["X-API-Key"] = self._config.api_key
            self._client = httpx.AsyncClient(
                base_url=self._config.api_url.rstrip("/"),
                timeout=self._config.timeout,
                headers=headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def create(self, template: str) -> str:
        client = self._get_client()
        try:
            resp = await client.post("/sandboxes", json={"template": template})
        except httpx.HTTPError as e:
            raise SandboxError(f"Sandbox request failed: {e}") from e
        if resp.status_code >= 400:
            logger.error("Sandbox create failed %s: %s", resp.status_code, resp.text[:500])
            raise SandboxError(f"Sandbox API error {resp.status_code}: {resp.text[:200]}")
        sandbox_id = resp.json().get("sandbox_id")
        if not sandbox_id:
            raise SandboxError("Sandbox API returned no sandbox_id")
        logger.info("Created remote sandbox %s from template %s", sandbox_id, template)
        return sandbox_id

    async def connect(self, sandbox_id: str) -> RemoteSandbox:
        client = self._get_client()
        sandbox = RemoteSandbox(sandbox_id, client, self._config)
        resp = await sandbox._request("GET", f"/sandboxes/{sandbox_id}")
        logger.debug("Connected to sandbox %s (%s)", sandbox_id, resp.status_code)
        return sandbox
