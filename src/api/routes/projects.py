"""Projects API - prompts, conversation history and generated fragments."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_dispatcher, get_projects_store
from src.api.store import Project, ProjectsStore
from src.application.jobs.dispatcher import JobDispatcher
from src.application.workflow.dto import PromptRequest, TriggeredRun
from src.domain.entities.workflow import CodeAgentEvent
from src.domain.ports.messages import MessageRole, MessageType, StoredMessage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def _require_project(store: ProjectsStore, project_id: str) -> Project:
    project = store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    body: PromptRequest,
    store: ProjectsStore = Depends(get_projects_store),
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> TriggeredRun:
    """Create a project from a prompt and start the coding agent on it."""
    project, message = store.create_project(body.value)
    job = dispatcher.send(CodeAgentEvent(project_id=project.id, value=body.value))
    logger.info("Project %s created, job %s", project.id, job.id)
    return TriggeredRun(project_id=project.id, message=message, job_id=job.id)


@router.get("")
async def list_projects(store: ProjectsStore = Depends(get_projects_store)) -> list[Project]:
    """List all projects, newest first."""
    return store.list_projects()


@router.get("/{project_id}")
async def get_project(project_id: str, store: ProjectsStore = Depends(get_projects_store)) -> Project:
    """Get one project."""
    return _require_project(store, project_id)


@router.get("/{project_id}/messages")
async def list_messages(
    project_id: str,
    store: ProjectsStore = Depends(get_projects_store),
) -> list[StoredMessage]:
    """Project conversation, oldest first, with fragments attached."""
    _require_project(store, project_id)
    return store.list_messages(project_id)


@router.post("/{project_id}/messages", status_code=status.HTTP_201_CREATED)
async def create_message(
    project_id: str,
    body: PromptRequest,
    store: ProjectsStore = Depends(get_projects_store),
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> TriggeredRun:
    """Append a user message and start a new run for it."""
    _require_project(store, project_id)
    message = store.create_message(project_id, body.value, MessageRole.USER, MessageType.RESULT)
    job = dispatcher.send(CodeAgentEvent(project_id=project_id, value=body.value))
    return TriggeredRun(project_id=project_id, message=message, job_id=job.id)
