"""Error codes dictionary.

Single source of truth for error codes, their retryability and a
human-readable suggested fix. Used by the exception handlers to build
machine-readable error responses.
"""

from typing import TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    retryable: bool
    suggested_fix: str


ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Input errors
    # ==========================================================================
    "INVALID_PROJECT": {
        "retryable": False,
        "suggested_fix": "Send a JSON project with Id, Video, Silent and Subtitles fields",
    },
    "JOB_NOT_FOUND": {
        "retryable": False,
        "suggested_fix": "Use the jobId returned by POST /api/export",
    },
    "INVALID_VIDEO_ID": {
        "retryable": False,
        "suggested_fix": "Video ids consist of ASCII letters only",
    },
    "VIDEO_NOT_FOUND": {
        "retryable": True,
        "suggested_fix": "Poll GET /api/export/{id} until the job is finished",
    },
    # ==========================================================================
    # Pipeline errors (never retried automatically)
    # ==========================================================================
    "PIPELINE_FAILED": {"retryable": False},
    "WORKSPACE_ERROR": {"retryable": False},
    "DOWNLOAD_FAILED": {
        "retryable": True,
        "suggested_fix": "Check that the source video URL is reachable",
    },
    "PROBE_FAILED": {
        "retryable": False,
        "suggested_fix": "The source file is not a readable video",
    },
    "FRAME_EXTRACTION_FAILED": {"retryable": False},
    "FONT_LOAD_FAILED": {
        "retryable": False,
        "suggested_fix": "Check the FONT_PATH setting",
    },
    "SUBTITLE_RENDER_FAILED": {"retryable": False},
    "ENCODE_FAILED": {"retryable": False},
    "PROCESS_FAILED": {"retryable": False},
    # ==========================================================================
    # System errors
    # ==========================================================================
    "INTERNAL_ERROR": {"retryable": True},
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Return the spec for an error code, or an empty spec for unknown codes."""
    return ERROR_CODES.get(code, {})
