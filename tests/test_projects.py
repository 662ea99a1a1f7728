"""Tests for Projects and Jobs API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.container import Container, reset_container, set_container
from src.api.dependencies import get_dispatcher
from src.domain.entities.workflow import CODE_AGENT_EVENT
from src.domain.ports.config import AppConfig, PersistenceConfig
from src.domain.ports.jobs import JobRecord, JobStatus
from src.main import app


@pytest.fixture
def dispatcher():
    """Dispatcher double: records events instead of running the workflow."""
    fake = MagicMock()
    fake.jobs = {}

    def send(event):
        record = JobRecord(id=f"job-{len(fake.jobs) + 1}", name=CODE_AGENT_EVENT, data=event.model_dump())
        fake.jobs[record.id] = record
        return record

    fake.send.side_effect = send
    fake.get.side_effect = lambda job_id: fake.jobs.get(job_id)
    return fake


@pytest.fixture
def client(tmp_path, dispatcher):
    """TestClient over a container writing to tmp_path."""
    container = Container(config=AppConfig(persistence=PersistenceConfig(output_dir=str(tmp_path))))
    llm = MagicMock()
    llm.is_available = AsyncMock(return_value=True)
    container.__dict__["llm"] = llm
    set_container(container)
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_container()


class TestHealth:
    """GET /health."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["llm_available"] is True


class TestCreateProject:
    """POST /projects."""

    def test_creates_project_and_triggers_job(self, client, dispatcher):
        response = client.post("/projects", json={"value": "Build a calculator"})
        assert response.status_code == 201
        data = response.json()
        assert data["job_id"] == "job-1"
        assert data["message"]["role"] == "USER"
        assert data["message"]["content"] == "Build a calculator"

        event = dispatcher.send.call_args.args[0]
        assert event.project_id == data["project_id"]
        assert event.value == "Build a calculator"

    def test_empty_prompt_rejected(self, client, dispatcher):
        response = client.post("/projects", json={"value": ""})
        assert response.status_code == 422
        dispatcher.send.assert_not_called()

    def test_prompt_too_long_rejected(self, client):
        response = client.post("/projects", json={"value": "x" * 10_001})
        assert response.status_code == 422

    def test_listed_and_fetched(self, client):
        project_id = client.post("/projects", json={"value": "Build a calculator"}).json()["project_id"]

        listed = client.get("/projects").json()
        assert [p["id"] for p in listed] == [project_id]

        fetched = client.get(f"/projects/{project_id}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "build-a-calculator"

    def test_unknown_project_404(self, client):
        assert client.get("/projects/missing").status_code == 404
        assert client.get("/projects/missing/messages").status_code == 404


class TestMessages:
    """GET/POST /projects/{id}/messages."""

    def test_follow_up_message(self, client, dispatcher):
        project_id = client.post("/projects", json={"value": "Build a calculator"}).json()["project_id"]

        response = client.post(f"/projects/{project_id}/messages", json={"value": "Make it dark"})
        assert response.status_code == 201
        assert response.json()["job_id"] == "job-2"

        messages = client.get(f"/projects/{project_id}/messages").json()
        assert [m["content"] for m in messages] == ["Build a calculator", "Make it dark"]

    def test_follow_up_unknown_project(self, client, dispatcher):
        response = client.post("/projects/missing/messages", json={"value": "hi"})
        assert response.status_code == 404
        dispatcher.send.assert_not_called()


class TestJobs:
    """GET /jobs/{id}."""

    def test_job_status(self, client, dispatcher):
        job_id = client.post("/projects", json={"value": "Build a calculator"}).json()["job_id"]
        dispatcher.jobs[job_id] = dispatcher.jobs[job_id].model_copy(
            update={"status": JobStatus.COMPLETED, "attempts": 1, "output": {"kind": "success"}}
        )

        response = client.get(f"/jobs/{job_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "completed"
        assert data["output"] == {"kind": "success"}

    def test_unknown_job(self, client):
        assert client.get("/jobs/missing").status_code == 404
