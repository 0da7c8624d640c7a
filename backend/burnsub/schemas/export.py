from pydantic import BaseModel, ConfigDict, Field


class ExportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")


class JobStatusResponse(BaseModel):
    id: str
    finished: bool
    progress: float
    error: str | None = None


class ErrorInfo(BaseModel):
    code: str
    message: str
    retryable: bool = False
    suggested_fix: str | None = None


class ErrorResponse(BaseModel):
    error: ErrorInfo
