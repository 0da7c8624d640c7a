"""In-memory job registry."""

import threading
from typing import Optional

from burnsub.models.job import ExportJob


class JobRegistry:
    """Synchronized map of job id to job. Entries live for the process lifetime."""

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: dict[str, ExportJob] = {}

    def put(self, job: ExportJob) -> None:
        with self._lock:
            self._jobs[job.id] = job

    def get(self, job_id: str) -> Optional[ExportJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
