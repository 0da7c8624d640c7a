from typing import Annotated

from fastapi import Depends, Request

from burnsub.config import Settings
from burnsub.services.job_registry import JobRegistry
from burnsub.tasks.scheduler import ExportScheduler


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> JobRegistry:
    return request.app.state.registry


def get_scheduler(request: Request) -> ExportScheduler:
    return request.app.state.scheduler


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Registry = Annotated[JobRegistry, Depends(get_registry)]
Scheduler = Annotated[ExportScheduler, Depends(get_scheduler)]
