"""Job dispatcher - triggers workflow runs and retries them from the top."""

import asyncio
import uuid
from datetime import datetime, timezone

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.application.workflow.steps import NonRetriableError
from src.application.workflow.use_case import CodeAgentWorkflow
from src.domain.entities.workflow import CODE_AGENT_EVENT, CodeAgentEvent, Outcome
from src.domain.entities.workflow_events import WorkflowEventType
from src.domain.ports.config import JobsConfig
from src.domain.ports.jobs import JobRecord, JobStatus, JobStore

log = structlog.get_logger()


class JobDispatcher:
    """Runs `code-agent/run` jobs in the background.

    The job id doubles as the workflow run id, so every attempt (and a resume
    after a restart) replays the same step log.
    """

    def __init__(
        self,
        workflow: CodeAgentWorkflow,
        store: JobStore,
        config: JobsConfig | None = None,
    ) -> None:
        self._workflow = workflow
        self._store = store
        self._config = config or JobsConfig()
        self._tasks: dict[str, asyncio.Task] = {}

    def send(self, event: CodeAgentEvent) -> JobRecord:
        """Record the job and schedule it on the running event loop."""
        record = JobRecord(id=str(uuid.uuid4()), name=CODE_AGENT_EVENT, data=event.model_dump())
        self._store.save(record)
        self._schedule(record)
        return record

    def get(self, job_id: str) -> JobRecord | None:
        """Current record of a job."""
        return self._store.get(job_id)

    def resume_pending(self) -> list[str]:
        """Re-dispatch jobs left queued or running by a previous process."""
        resumed = []
        for record in self._store.list_unfinished():
            if record.id in self._tasks:
                continue
            log.info("job_resumed", job_id=record.id, attempts=record.attempts)
            self._schedule(record)
            resumed.append(record.id)
        return resumed

    async def wait(self, job_id: str) -> JobRecord | None:
        """Wait for a scheduled job to finish (tests, CLI)."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self._store.get(job_id)

    def _schedule(self, record: JobRecord) -> None:
        task = asyncio.create_task(self.execute(record), name=f"job-{record.id}")
        self._tasks[record.id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(record.id, None))

    def _update(self, record: JobRecord, **changes) -> JobRecord:
        updated = record.model_copy(update={**changes, "updated_at": datetime.now(timezone.utc)})
        self._store.save(updated)
        return updated

    async def execute(self, record: JobRecord) -> JobRecord:
        """Run the workflow with the retry policy; record the final status.

        Attempts made before a restart count against the same budget.
        """
        remaining = self._config.max_attempts - record.attempts
        if remaining <= 0:
            error = f"Retry budget exhausted after {record.attempts} attempts"
            log.error(WorkflowEventType.RUN_FAILED.value, job_id=record.id, attempts=record.attempts, error=error)
            return self._update(record, status=JobStatus.FAILED, error=record.error or error)
        event = CodeAgentEvent.model_validate(record.data)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(remaining),
            wait=wait_exponential(
                multiplier=1,
                min=self._config.backoff_min_seconds,
                max=self._config.backoff_max_seconds,
            ),
            retry=retry_if_not_exception_type(NonRetriableError),
            reraise=True,
        )
        try:
            outcome: Outcome | None = None
            async for attempt in retrying:
                with attempt:
                    record = self._update(record, status=JobStatus.RUNNING, attempts=record.attempts + 1)
                    outcome = await self._workflow.run(event, run_id=record.id)
        except Exception as e:
            log.error(
                WorkflowEventType.RUN_FAILED.value,
                job_id=record.id,
                attempts=record.attempts,
                error=str(e),
            )
            return self._update(record, status=JobStatus.FAILED, error=str(e))
        return self._update(
            record,
            status=JobStatus.COMPLETED,
            error=None,
            output=outcome.model_dump(mode="json") if outcome else None,
        )
