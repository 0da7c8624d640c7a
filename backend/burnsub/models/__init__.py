from burnsub.models.job import ExportJob, JobStatus

__all__ = [
    "ExportJob",
    "JobStatus",
]
