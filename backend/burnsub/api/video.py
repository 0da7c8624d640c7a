"""Download endpoint for rendered videos."""

import re
from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse

from burnsub.api.deps import AppSettings
from burnsub.exceptions import InvalidVideoIdError, VideoNotFoundError
from burnsub.render.pipeline import RENDERED_FILE

router = APIRouter()

VIDEO_ID_PATTERN = re.compile(r"[a-zA-Z]+")


@router.get("/{job_id}/video.mp4")
def download_video(job_id: str, settings: AppSettings) -> FileResponse:
    # the id becomes part of a file path
    if not VIDEO_ID_PATTERN.fullmatch(job_id):
        raise InvalidVideoIdError()

    path = Path(settings.export_root) / job_id / RENDERED_FILE
    if not path.is_file():
        raise VideoNotFoundError(job_id)

    return FileResponse(path, media_type="video/mp4")
