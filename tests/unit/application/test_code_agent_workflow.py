"""Tests for the code-agent workflow: finalizer, end to end and resume."""

import pytest

from src.application.agent.prompts import (
    CODING_AGENT_PROMPT,
    FRAGMENT_TITLE_PROMPT,
    RESPONSE_PROMPT,
)
from src.application.workflow.finalizer import ERROR_MESSAGE
from src.application.workflow.sandbox_client import SandboxProvisioningError
from src.application.workflow.steps import StepError
from src.application.workflow.use_case import CodeAgentWorkflow
from src.domain.entities.workflow import CodeAgentEvent, OutcomeKind
from src.domain.ports.config import AgentConfig, AppConfig
from src.domain.ports.llm import Completion, ToolCall
from src.domain.ports.messages import MessageRole, MessageType

HELLO_HTML = "<h1>Hello world</h1>"


def script_hello_world(llm):
    llm.script(
        CODING_AGENT_PROMPT,
        Completion(
            text="Creating the page.",
            tool_calls=[
                ToolCall(
                    id="call_1",
                    name="createOrUpdateFiles",
                    arguments={"files": [{"path": "index.html", "content": HELLO_HTML}]},
                )
            ],
        ),
        Completion(text="<task_summary>Created a hello world page.</task_summary>"),
    )
    llm.script(FRAGMENT_TITLE_PROMPT, Completion(text="Hello World"))
    llm.script(RESPONSE_PROMPT, Completion(text="Your hello world page is ready."))


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def workflow(llm, sandbox_provider, message_store, step_store, config):
    return CodeAgentWorkflow(
        llm=llm,
        sandbox_provider=sandbox_provider,
        messages=message_store,
        step_store=step_store,
        config=config,
    )


@pytest.fixture
def event():
    return CodeAgentEvent(project_id="p1", value="Create a hello world page")


class TestHelloWorld:
    """Happy path."""

    async def test_success_outcome(self, workflow, llm, event, message_store, sandbox_provider):
        script_hello_world(llm)
        outcome = await workflow.run(event, run_id="run-1")

        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.files == {"index.html": HELLO_HTML}
        assert outcome.summary == "Created a hello world page."
        assert outcome.title == "Hello World"
        assert outcome.response_text == "Your hello world page is ready."
        assert outcome.sandbox_url == "https://3000-sbx-1.sandbox.test"

        assert message_store.writes == 1
        saved = message_store.messages[-1]
        assert saved.id == outcome.message_id
        assert saved.role == MessageRole.ASSISTANT
        assert saved.type == MessageType.RESULT
        assert saved.fragment.files == {"index.html": HELLO_HTML}
        assert saved.fragment.title == "Hello World"

        sandbox = sandbox_provider.sandboxes["sbx-1"]
        assert sandbox.writes == ["index.html"]
        assert sandbox_provider.created == ["nextjs-app"]

    async def test_title_and_response_get_summary(self, workflow, llm, event):
        script_hello_world(llm)
        await workflow.run(event, run_id="run-1")
        title_call = next(c for c in llm.calls if c["system_prompt"] == FRAGMENT_TITLE_PROMPT)
        assert title_call["messages"][0].content == "Created a hello world page."
        assert title_call["tools"] is None

    async def test_empty_generators_fall_back(self, workflow, llm, event, message_store):
        script_hello_world(llm)
        llm.scripts[FRAGMENT_TITLE_PROMPT] = [Completion(text="  ")]
        llm.scripts[RESPONSE_PROMPT] = [Completion(text="")]
        outcome = await workflow.run(event, run_id="run-1")
        assert outcome.title == "Fragment"
        assert outcome.response_text == "Here you go!"

    async def test_failed_command_does_not_stop_the_run(self, workflow, llm, event, sandbox_provider):
        install = "npm install nope --yes"
        create = sandbox_provider.create

        async def create_with_broken_registry(template):
            sandbox_id = await create(template)
            sandbox_provider.sandboxes[sandbox_id].command_results[install] = (1, "", "npm ERR! 404 nope")
            return sandbox_id

        sandbox_provider.create = create_with_broken_registry
        llm.script(
            CODING_AGENT_PROMPT,
            Completion(
                text="Installing a package.",
                tool_calls=[ToolCall(id="call_0", name="terminal", arguments={"command": install})],
            ),
            Completion(
                text="The package does not exist, writing the page without it.",
                tool_calls=[
                    ToolCall(
                        id="call_1",
                        name="createOrUpdateFiles",
                        arguments={"files": [{"path": "index.html", "content": HELLO_HTML}]},
                    )
                ],
            ),
            Completion(text="<task_summary>Created a hello world page.</task_summary>"),
        )
        llm.script(FRAGMENT_TITLE_PROMPT, Completion(text="Hello World"))
        llm.script(RESPONSE_PROMPT, Completion(text="Done."))

        outcome = await workflow.run(event, run_id="run-1")

        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.files == {"index.html": HELLO_HTML}
        assert sandbox_provider.sandboxes["sbx-1"].commands == [install]
        coding_calls = [c for c in llm.calls if c["system_prompt"] == CODING_AGENT_PROMPT]
        assert len(coding_calls) == 3
        tool_results = [m.content for m in coding_calls[1]["messages"] if m.role == "tool"]
        assert len(tool_results) == 1
        assert "Command failed" in tool_results[0]
        assert "npm ERR! 404 nope" in tool_results[0]


class TestErrorOutcome:
    """Missing summary or files is an error, still saved exactly once."""

    async def test_ceiling_without_summary(self, llm, sandbox_provider, message_store, step_store, event):
        workflow = CodeAgentWorkflow(
            llm=llm,
            sandbox_provider=sandbox_provider,
            messages=message_store,
            step_store=step_store,
            config=AppConfig(agent=AgentConfig(max_iterations=2)),
        )
        outcome = await workflow.run(event, run_id="run-1")
        assert outcome.kind == OutcomeKind.ERROR
        assert message_store.writes == 1
        saved = message_store.messages[-1]
        assert saved.type == MessageType.ERROR
        assert saved.content == ERROR_MESSAGE
        assert saved.fragment is None

    async def test_summary_without_files(self, workflow, llm, event, message_store):
        llm.script(CODING_AGENT_PROMPT, Completion(text="<task_summary>Nothing to do</task_summary>"))
        outcome = await workflow.run(event, run_id="run-1")
        assert outcome.kind == OutcomeKind.ERROR
        assert message_store.messages[-1].type == MessageType.ERROR

    async def test_sandbox_provisioning_failure_is_fatal(self, workflow, sandbox_provider, event, message_store):
        sandbox_provider.fail_create = RuntimeError("no capacity")
        with pytest.raises(SandboxProvisioningError):
            await workflow.run(event, run_id="run-1")
        assert message_store.writes == 0


class TestHistory:
    """Prior project messages seed the conversation."""

    async def test_last_five_messages_oldest_first(self, workflow, llm, event, message_store):
        for i in range(7):
            role = MessageRole.USER if i % 2 == 0 else MessageRole.ASSISTANT
            message_store.add("p1", f"m{i}", role)
        message_store.add("other", "elsewhere", MessageRole.USER)
        script_hello_world(llm)

        await workflow.run(event, run_id="run-1")

        first = llm.calls[0]["messages"]
        assert [m.content for m in first] == ["m2", "m3", "m4", "m5", "m6", "Create a hello world page"]
        assert [m.role for m in first[:2]] == ["user", "assistant"]


class TestResume:
    """Re-entering the run replays completed steps."""

    async def test_rerun_is_idempotent(self, workflow, llm, event, message_store, sandbox_provider):
        script_hello_world(llm)
        first = await workflow.run(event, run_id="run-1")
        calls_after_first = len(llm.calls)

        second = await workflow.run(event, run_id="run-1")

        assert second == first
        assert len(llm.calls) == calls_after_first
        assert message_store.writes == 1
        assert sandbox_provider.created == ["nextjs-app"]
        assert sandbox_provider.sandboxes["sbx-1"].writes == ["index.html"]

    async def test_resume_after_failure(self, workflow, llm, event, message_store, sandbox_provider):
        script_hello_world(llm)
        failures = []
        scripted = llm.complete

        async def fail_title_once(system_prompt, messages, **kwargs):
            if system_prompt == FRAGMENT_TITLE_PROMPT and not failures:
                failures.append(1)
                raise ConnectionError("model went away")
            return await scripted(system_prompt, messages, **kwargs)

        llm.complete = fail_title_once

        with pytest.raises(StepError):
            await workflow.run(event, run_id="run-1")
        assert message_store.writes == 0

        outcome = await workflow.run(event, run_id="run-1")

        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.title == "Hello World"
        assert message_store.writes == 1
        assert sandbox_provider.created == ["nextjs-app"]
        assert sandbox_provider.sandboxes["sbx-1"].writes == ["index.html"]
        coding_calls = [c for c in llm.calls if c["system_prompt"] == CODING_AGENT_PROMPT]
        assert len(coding_calls) == 2
