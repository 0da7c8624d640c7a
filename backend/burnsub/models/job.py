"""Export job state."""

import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from burnsub.render.progress import ProgressMeter, progress_of
from burnsub.schemas.project import Project

if TYPE_CHECKING:
    from burnsub.render.pipeline import ExportPipeline

JOB_ID_ALPHABET = string.ascii_letters


def new_job_id(length: int = 12) -> str:
    """Random id made of ASCII letters."""
    return "".join(secrets.choice(JOB_ID_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class JobStatus:
    """Snapshot of a job for status queries."""

    id: str
    finished: bool
    progress: float
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ExportJob:
    """One export of a project.

    The owning pipeline is the only writer. Status queries read ``progress``,
    ``error`` and the completion flag concurrently, all lock-guarded.
    """

    def __init__(self, project: Project, id_length: int = 12):
        self.id = new_job_id(id_length)
        self.project = project
        # provisional meter, the pipeline replaces it with one step per stage
        self.progress = ProgressMeter(1)
        self.created_at = datetime.now(timezone.utc)
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None

        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._output_file: Optional[str] = None

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error

    @property
    def finished(self) -> bool:
        """Terminal state, set by ``execute`` together with the outcome."""
        with self._lock:
            return self.completed_at is not None

    @property
    def output_file(self) -> Optional[str]:
        """Rendered file, only once the job finished without error."""
        with self._lock:
            if self._error is not None or self.completed_at is None:
                return None
            return self._output_file

    def set_output_file(self, path: str) -> None:
        with self._lock:
            self._output_file = path

    async def execute(self, pipeline: "ExportPipeline") -> None:
        """Run ``pipeline`` for this job and record its outcome.

        The error, the completion time and the forced finish of the meter are
        written under one lock after the pipeline returned, cleanup included.
        A reader that sees ``finished`` also sees the error.
        """
        self.started_at = datetime.now(timezone.utc)
        error: Optional[Exception] = None
        try:
            await pipeline.run(self)
        except Exception as e:
            error = e
            raise
        finally:
            with self._lock:
                self._error = error
                self.completed_at = datetime.now(timezone.utc)
                self.progress.finish_now()

    def status(self) -> JobStatus:
        with self._lock:
            error = self._error
            completed_at = self.completed_at
            progress = progress_of(self.progress)

        return JobStatus(
            id=self.id,
            finished=completed_at is not None,
            progress=progress,
            error=str(error) if error is not None else None,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=completed_at,
        )

    def __repr__(self) -> str:
        return f"ExportJob(id={self.id!r}, progress={progress_of(self.progress):.3f})"
