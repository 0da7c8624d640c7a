"""Export API endpoints."""

import logging

from fastapi import APIRouter

from burnsub.api.deps import AppSettings, Registry, Scheduler
from burnsub.exceptions import JobNotFoundError
from burnsub.models.job import ExportJob
from burnsub.schemas.export import ExportResponse, JobStatusResponse
from burnsub.schemas.project import Project

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/export", response_model=ExportResponse)
async def export_video(
    project: Project,
    registry: Registry,
    scheduler: Scheduler,
    settings: AppSettings,
) -> ExportResponse:
    """Queue an export job for ``project`` and return its id."""
    job = ExportJob(project, id_length=settings.job_id_length)

    registry.put(job)
    await scheduler.submit(job)

    logger.info(f"[EXPORT {job.id}] Queued export of {project.video} with {len(project.subtitles)} subtitles")
    return ExportResponse(job_id=job.id)


@router.get("/export/{job_id}", response_model=JobStatusResponse)
def export_status(job_id: str, registry: Registry) -> JobStatusResponse:
    job = registry.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)

    status = job.status()
    return JobStatusResponse(
        id=status.id,
        finished=status.finished,
        progress=status.progress,
        error=status.error,
    )
