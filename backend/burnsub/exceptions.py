"""Custom exceptions for the burnsub backend.

Input errors carry the HTTP status they are surfaced with. Pipeline errors
are stored on the failed job as its terminal error and never retried.
"""

from burnsub.constants.error_codes import get_error_spec
from burnsub.schemas.export import ErrorInfo


class BurnsubError(Exception):
    """Base exception for all burnsub application errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)

    def to_error_info(self) -> ErrorInfo:
        """Convert exception to ErrorInfo for API response."""
        spec = get_error_spec(self.code)
        return ErrorInfo(
            code=self.code,
            message=self.message,
            retryable=spec.get("retryable", False),
            suggested_fix=spec.get("suggested_fix"),
        )


# =============================================================================
# Input Errors (4xx)
# =============================================================================


class InvalidProjectError(BurnsubError):
    """Submitted project body could not be decoded."""

    code = "INVALID_PROJECT"
    status_code = 400
    message = "Could not decode body"


class JobNotFoundError(BurnsubError):
    """No job with this id."""

    code = "JOB_NOT_FOUND"
    status_code = 404
    message = "Job not found"

    def __init__(self, job_id: str | None = None):
        message = f"Job not found: {job_id}" if job_id else self.message
        super().__init__(message)


class InvalidVideoIdError(BurnsubError):
    """Video id has an invalid format."""

    code = "INVALID_VIDEO_ID"
    status_code = 403
    message = "Invalid id."


class VideoNotFoundError(BurnsubError):
    """Rendered video does not exist (yet)."""

    code = "VIDEO_NOT_FOUND"
    status_code = 404
    message = "Video not found"

    def __init__(self, job_id: str | None = None):
        message = f"Video not found: {job_id}" if job_id else self.message
        super().__init__(message)


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(BurnsubError):
    """Base class for errors raised while exporting a job."""

    code = "PIPELINE_FAILED"
    status_code = 500
    message = "Export failed"


class WorkspaceError(PipelineError):
    code = "WORKSPACE_ERROR"
    message = "Could not create workspace"


class DownloadError(PipelineError):
    code = "DOWNLOAD_FAILED"
    message = "Could not download original video"


class ProbeError(PipelineError):
    code = "PROBE_FAILED"
    message = "Could not get video information from file"


class FrameExtractionError(PipelineError):
    code = "FRAME_EXTRACTION_FAILED"
    message = "Could not extract frames from video"


class FontLoadError(PipelineError):
    code = "FONT_LOAD_FAILED"
    message = "Could not load subtitle font"


class SubtitleRenderError(PipelineError):
    code = "SUBTITLE_RENDER_FAILED"
    message = "Could not render subtitles"


class EncodeError(PipelineError):
    code = "ENCODE_FAILED"
    message = "Error encoding the video"


class ProcessError(PipelineError):
    """An external media tool exited with a non-zero status."""

    code = "PROCESS_FAILED"
    message = "External process failed"

    def __init__(self, program: str, returncode: int, stderr: str = ""):
        self.program = program
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Could not run {program}: exit status {returncode}")
