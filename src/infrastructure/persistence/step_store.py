"""Step store - write-once step log per workflow run."""

import json
import logging
import threading
from pathlib import Path

from src.domain.ports.steps import StepRecord, StepRecordExistsError

logger = logging.getLogger(__name__)


class InMemoryStepStore:
    """Step log held in process memory (tests, ephemeral runs)."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], StepRecord] = {}
        self._lock = threading.Lock()

    def get(self, run_id: str, name: str) -> StepRecord | None:
        """Return the completed record or None."""
        with self._lock:
            return self._records.get((run_id, name))

    def put(self, record: StepRecord) -> None:
        """Store record; existing keys are never overwritten."""
        key = (record.run_id, record.name)
        with self._lock:
            if key in self._records:
                raise StepRecordExistsError(f"Step already recorded: {record.run_id}/{record.name}")
            self._records[key] = record


class FileStepStore:
    """Save step records to {output_dir}/steps/{run_id}.json.

    Thread-safe: file operations are protected by a reentrant lock. Each put
    rewrites the run's log through a temp file and an atomic rename.
    """

    def __init__(self, output_dir: str = "output") -> None:
        """Initialize with output directory for step logs."""
        self._base = Path(output_dir) / "steps"
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path(self, run_id: str) -> Path:
        return self._base / f"{run_id}.json"

    def _load(self, run_id: str) -> dict[str, dict]:
        path = self._path(run_id)
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            # A corrupt log would replay wrong results; refuse rather than guess
            logger.error("Malformed step log: %s", path)
            raise
        return data if isinstance(data, dict) else {}

    def get(self, run_id: str, name: str) -> StepRecord | None:
        """Return the completed record or None."""
        with self._lock:
            raw = self._load(run_id).get(name)
        if raw is None:
            return None
        return StepRecord.model_validate(raw)

    def put(self, record: StepRecord) -> None:
        """Append record to the run log (write-once per name)."""
        with self._lock:
            data = self._load(record.run_id)
            if record.name in data:
                raise StepRecordExistsError(f"Step already recorded: {record.run_id}/{record.name}")
            data[record.name] = record.model_dump(mode="json")
            path = self._path(record.run_id)
            tmp_path = path.with_suffix(".tmp")
            try:
                tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
                tmp_path.replace(path)
            except OSError:
                logger.warning("Failed to save step log %s", path, exc_info=True)
                tmp_path.unlink(missing_ok=True)
                raise

    def list_steps(self, run_id: str) -> list[str]:
        """Names of completed steps of a run, in completion order."""
        with self._lock:
            return list(self._load(run_id).keys())
