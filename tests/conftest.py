"""Pytest configuration and shared fixtures: in-memory fakes for the workflow's collaborators."""

import uuid
from collections.abc import Callable

import pytest

from src.application.workflow.sandbox_client import SandboxClient
from src.application.workflow.steps import StepExecutor
from src.domain.ports.llm import Completion, LLMMessage
from src.domain.ports.messages import (
    Fragment,
    FragmentInput,
    MessageRole,
    MessageType,
    StoredMessage,
)
from src.domain.ports.sandbox import CommandExitError, SandboxNotFoundError
from src.infrastructure.persistence.step_store import InMemoryStepStore


class ScriptedLLM:
    """LLMPort returning completions from a per-system-prompt script, in order.

    Exhausted scripts (and unscripted prompts) return `default`.
    """

    def __init__(self, default: Completion | None = None) -> None:
        self.scripts: dict[str, list[Completion]] = {}
        self.responder: Callable[[str, list[LLMMessage]], Completion] | None = None
        self.default = default or Completion(text="")
        self.calls: list[dict] = []

    def script(self, system_prompt: str, *completions: Completion) -> None:
        self.scripts.setdefault(system_prompt, []).extend(completions)

    async def complete(self, system_prompt, messages, tools=None, model=None, temperature=0.1) -> Completion:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": list(messages),
                "tools": tools,
                "model": model,
                "temperature": temperature,
            }
        )
        if self.responder is not None:
            return self.responder(system_prompt, messages)
        queue = self.scripts.get(system_prompt)
        if queue:
            return queue.pop(0)
        return self.default

    async def is_available(self) -> bool:
        return True


class FakeSandbox:
    """In-memory SandboxConnection."""

    def __init__(self, sandbox_id: str) -> None:
        self.sandbox_id = sandbox_id
        self.files: dict[str, str] = {}
        self.commands: list[str] = []
        self.writes: list[str] = []
        # command -> (exit_code, stdout, stderr)
        self.command_results: dict[str, tuple[int, str, str]] = {}
        self.failing_paths: set[str] = set()

    async def run_command(self, command, on_stdout=None, on_stderr=None, timeout=None) -> str:
        self.commands.append(command)
        exit_code, stdout, stderr = self.command_results.get(command, (0, "", ""))
        if stdout and on_stdout:
            on_stdout(stdout)
        if stderr and on_stderr:
            on_stderr(stderr)
        if exit_code != 0:
            raise CommandExitError(exit_code, stdout=stdout, stderr=stderr)
        return stdout

    async def read_file(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    async def write_file(self, path: str, content: str) -> None:
        if path in self.failing_paths:
            raise OSError(f"disk full: {path}")
        self.writes.append(path)
        self.files[path] = content

    def get_host(self, port: int) -> str:
        return f"{port}-{self.sandbox_id}.sandbox.test"


class FakeSandboxProvider:
    """SandboxProvider holding FakeSandbox instances."""

    def __init__(self) -> None:
        self.sandboxes: dict[str, FakeSandbox] = {}
        self.created: list[str] = []
        self.fail_create: Exception | None = None

    async def create(self, template: str) -> str:
        if self.fail_create is not None:
            raise self.fail_create
        sandbox_id = f"sbx-{len(self.created) + 1}"
        self.sandboxes[sandbox_id] = FakeSandbox(sandbox_id)
        self.created.append(template)
        return sandbox_id

    async def connect(self, sandbox_id: str) -> FakeSandbox:
        if sandbox_id not in self.sandboxes:
            raise SandboxNotFoundError(sandbox_id)
        return self.sandboxes[sandbox_id]


class FakeMessageStore:
    """MessageStore keeping messages in a list."""

    def __init__(self) -> None:
        self.messages: list[StoredMessage] = []
        self.writes = 0

    def add(self, project_id: str, content: str, role: MessageRole) -> StoredMessage:
        message = StoredMessage(id=str(uuid.uuid4()), project_id=project_id, content=content, role=role)
        self.messages.append(message)
        return message

    def recent_messages(self, project_id: str, limit: int) -> list[StoredMessage]:
        own = [m for m in self.messages if m.project_id == project_id]
        return list(reversed(own))[:limit]

    def create_message(
        self,
        project_id: str,
        content: str,
        role: MessageRole,
        type: MessageType = MessageType.RESULT,
        fragment: FragmentInput | None = None,
    ) -> StoredMessage:
        self.writes += 1
        message = StoredMessage(
            id=str(uuid.uuid4()),
            project_id=project_id,
            content=content,
            role=role,
            type=type,
            fragment=Fragment(id=str(uuid.uuid4()), **fragment.model_dump()) if fragment else None,
        )
        self.messages.append(message)
        return message


@pytest.fixture
def step_store() -> InMemoryStepStore:
    return InMemoryStepStore()


@pytest.fixture
def steps(step_store) -> StepExecutor:
    return StepExecutor("run-1", step_store)


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def sandbox_provider() -> FakeSandboxProvider:
    return FakeSandboxProvider()


@pytest.fixture
def sandbox_client(sandbox_provider, steps) -> SandboxClient:
    return SandboxClient(sandbox_provider, steps)


@pytest.fixture
def message_store() -> FakeMessageStore:
    return FakeMessageStore()
