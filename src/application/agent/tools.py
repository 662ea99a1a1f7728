"""Agent tools - schema-validated operations against the run's sandbox."""

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, ValidationError, WithJsonSchema

from src.application.workflow.sandbox_client import SandboxClient, SandboxHandle
from src.application.workflow.steps import StepExecutor
from src.domain.entities.agent_state import AgentState

logger = logging.getLogger(__name__)


@dataclass
class ToolCallContext:
    """Per-call context handed to a tool handler."""

    state: AgentState
    steps: StepExecutor
    step_name: str  # Unique per call site, e.g. "code-agent:3:terminal:0"


ToolHandler = Callable[[Any, ToolCallContext], Awaitable[str]]


@dataclass(frozen=True)
class ToolDefinition:
    """Named operation an agent may invoke mid-turn."""

    name: str
    description: str
    parameters: type[BaseModel]
    handler: ToolHandler

    def json_schema(self) -> dict:
        """OpenAI function-tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.model_json_schema(),
            },
        }


async def invoke_tool(
    tools: dict[str, ToolDefinition],
    name: str,
    arguments: dict[str, Any] | str,
    ctx: ToolCallContext,
) -> str:
    """Validate arguments and run the handler. Bad input becomes an error string."""
    tool = tools.get(name)
    if tool is None:
        return f"Error: unknown tool '{name}'. Available tools: {', '.join(sorted(tools))}"
    if not isinstance(arguments, dict):
        return f"Error: invalid arguments for {name}: expected a JSON object, received {arguments!r}"
    try:
        parsed = tool.parameters.model_validate(arguments)
    except ValidationError as e:
        logger.info("Rejected arguments for tool %s: %s", name, e)
        return f"Error: invalid arguments for {name}: {e}"
    return await tool.handler(parsed, ctx)


# --- Parameter schemas ---

FILE_ENTRY_SCHEMA = {
    "type": "object",
    "required": ["path", "content"],
    "properties": {
        "path": {"type": "string", "description": "File path relative to the app root, e.g. app/page.tsx"},
        "content": {"type": "string", "description": "Full file content"},
    },
}


class TerminalArgs(BaseModel):
    command: str


class FileEntry(BaseModel):
    """One file to write. Strict: non-string path or content is malformed."""

    model_config = ConfigDict(strict=True)

    path: str
    content: str


class CreateOrUpdateFilesArgs(BaseModel):
    # Entries are validated one by one so a malformed entry does not reject the batch
    files: Annotated[list[Any], WithJsonSchema({"type": "array", "items": FILE_ENTRY_SCHEMA})]


class ReadFilesArgs(BaseModel):
    files: Annotated[list[Any], WithJsonSchema({"type": "array", "items": {"type": "string"}})]


# --- Sandbox tools ---


def build_sandbox_tools(sandbox: SandboxClient, handle: SandboxHandle) -> list[ToolDefinition]:
    """Tools bound to one run's sandbox."""

    async def terminal(args: TerminalArgs, ctx: ToolCallContext) -> str:
        async def _run() -> str:
            output = await sandbox.run_command(handle, args.command)
            return output.as_text()

        return await ctx.steps.run(ctx.step_name, _run)

    async def create_or_update_files(args: CreateOrUpdateFilesArgs, ctx: ToolCallContext) -> str:
        async def _write() -> dict:
            merged = dict(ctx.state.files)
            written: list[str] = []
            failed: dict[str, str] = {}
            skipped = 0
            for entry in args.files:
                try:
                    file = FileEntry.model_validate(entry)
                except ValidationError:
                    logger.warning("Skipping invalid file entry: %r", entry)
                    skipped += 1
                    continue
                try:
                    await sandbox.write_file(handle, file.path, file.content)
                except Exception as e:
                    logger.warning("Failed to write %s to sandbox: %s", file.path, e)
                    failed[file.path] = str(e)
                    continue
                merged[file.path] = file.content
                written.append(file.path)
            return {"files": merged, "written": written, "skipped": skipped, "failed": failed}

        result = await ctx.steps.run(ctx.step_name, _write)
        ctx.state.merge_files(result["files"])
        return _describe_write(result)

    async def read_files(args: ReadFilesArgs, ctx: ToolCallContext) -> str:
        async def _read() -> str:
            contents: list[dict[str, str]] = []
            for path in args.files:
                if not isinstance(path, str):
                    logger.warning("Skipping invalid file path: %r", path)
                    continue
                try:
                    content = await sandbox.read_file(handle, path)
                except Exception as e:
                    logger.info("Failed to read %s from sandbox: %s", path, e)
                    contents.append({"path": path, "error": str(e)})
                    continue
                contents.append({"path": path, "content": content})
            return json.dumps(contents, ensure_ascii=False)

        return await ctx.steps.run(ctx.step_name, _read)

    return [
        ToolDefinition(
            name="terminal",
            description="Use the terminal to run commands",
            parameters=TerminalArgs,
            handler=terminal,
        ),
        ToolDefinition(
            name="createOrUpdateFiles",
            description="Create or update files in the sandbox",
            parameters=CreateOrUpdateFilesArgs,
            handler=create_or_update_files,
        ),
        ToolDefinition(
            name="readFiles",
            description="Read files from the sandbox",
            parameters=ReadFilesArgs,
            handler=read_files,
        ),
    ]


def _describe_write(result: dict) -> str:
    """Tool result text for createOrUpdateFiles."""
    parts = []
    if result["written"]:
        parts.append("Updated files: " + ", ".join(result["written"]))
    else:
        parts.append("No files were written.")
    if result["skipped"]:
        parts.append(f"Skipped {result['skipped']} invalid entries (each needs string 'path' and 'content').")
    for path, error in result["failed"].items():
        parts.append(f"Error writing {path}: {error}")
    return "\n".join(parts)
