"""Job store - job records in {output_dir}/jobs/{id}.json."""

import json
import logging
import threading
from pathlib import Path

from src.domain.ports.jobs import JobRecord, JobStatus

logger = logging.getLogger(__name__)

_UNFINISHED = (JobStatus.QUEUED, JobStatus.RUNNING)


class FileJobStore:
    """File-backed job records, one JSON file per job."""

    def __init__(self, output_dir: str = "output") -> None:
        """Initialize with output directory for job files."""
        self._base = Path(output_dir) / "jobs"
        self._base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def save(self, record: JobRecord) -> None:
        """Write record atomically (temp file + rename)."""
        path = self._base / f"{record.id}.json"
        tmp_path = path.with_suffix(".tmp")
        with self._lock:
            try:
                tmp_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
                tmp_path.replace(path)
            except OSError:
                logger.warning("Failed to save job %s", record.id, exc_info=True)
                tmp_path.unlink(missing_ok=True)
                raise

    def get(self, job_id: str) -> JobRecord | None:
        """Load a job; None if missing or unreadable."""
        path = self._base / f"{job_id}.json"
        if not path.exists():
            return None
        try:
            with self._lock:
                raw = path.read_text(encoding="utf-8")
            return JobRecord.model_validate_json(raw)
        except (OSError, ValueError):
            logger.warning("Failed to load job %s", job_id, exc_info=True)
            return None

    def list_unfinished(self) -> list[JobRecord]:
        """Queued or running jobs, oldest first."""
        records = []
        for path in self._base.glob("*.json"):
            record = self.get(path.stem)
            if record and record.status in _UNFINISHED:
                records.append(record)
        return sorted(records, key=lambda r: r.created_at)
