from burnsub.schemas.export import ErrorInfo, ErrorResponse, ExportResponse, JobStatusResponse
from burnsub.schemas.project import Position, Project, Subtitle

__all__ = [
    "Project",
    "Subtitle",
    "Position",
    "ExportResponse",
    "JobStatusResponse",
    "ErrorInfo",
    "ErrorResponse",
]
