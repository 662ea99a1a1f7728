"""Step executor - memoized, replay-safe units of side-effecting work."""

import inspect
import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.domain.ports.steps import StepRecord, StepStore

log = structlog.get_logger()

StepFn = Callable[[], Awaitable[Any] | Any]


class StepError(Exception):
    """A step function raised; nothing was recorded for it."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Step '{name}' failed: {cause}")
        self.name = name
        self.cause = cause


class NonRetriableError(Exception):
    """Failure that must not be retried by the job runner."""


class StepExecutor:
    """Runs named steps for one workflow run against a write-once store.

    The first successful call of `run(name, fn)` records fn's result; any
    later call with the same name, in this attempt or a retry of the whole
    workflow function, returns the recorded result without calling fn.
    """

    def __init__(self, run_id: str, store: StepStore) -> None:
        self._run_id = run_id
        self._store = store

    @property
    def run_id(self) -> str:
        return self._run_id

    async def run(self, name: str, fn: StepFn) -> Any:
        """Execute fn once per (run_id, name); return the recorded result."""
        record = self._store.get(self._run_id, name)
        if record is not None:
            log.debug("step_replayed", step=name)
            return record.result

        try:
            result = fn()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            log.warning("step_failed", step=name, error=str(e))
            raise StepError(name, e) from e

        try:
            # Round-trip so live and replayed callers see the same value
            result = json.loads(json.dumps(result))
        except (TypeError, ValueError) as e:
            raise StepError(name, e) from e

        self._store.put(StepRecord(run_id=self._run_id, name=name, result=result))
        log.debug("step_completed", step=name)
        return result
