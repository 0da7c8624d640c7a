import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from burnsub.api import export, video
from burnsub.config import Settings, get_settings
from burnsub.exceptions import BurnsubError, InvalidProjectError
from burnsub.render.pipeline import ExportPipeline
from burnsub.schemas.export import ErrorResponse
from burnsub.services.job_registry import JobRegistry
from burnsub.tasks.scheduler import ExportScheduler

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _error_response(exc: BurnsubError) -> JSONResponse:
    body = ErrorResponse(error=exc.to_error_info())
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def create_app(settings: Optional[Settings] = None, pipeline: Optional[ExportPipeline] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        scheduler = ExportScheduler(
            pipeline or ExportPipeline(settings),
            concurrency=settings.export_concurrency,
            queue_size=settings.export_queue_size,
        )
        app.state.scheduler = scheduler
        scheduler.start()
        yield
        # Shutdown
        await scheduler.stop()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = JobRegistry()

    @app.exception_handler(BurnsubError)
    async def burnsub_exception_handler(request: Request, exc: BurnsubError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies are client errors (400), not 422."""
        errors = exc.errors()
        if errors:
            first_error = errors[0]
            loc = " -> ".join(str(x) for x in first_error.get("loc", []))
            msg = first_error.get("msg", "Validation error")
            message = f"Could not decode body: {loc}: {msg}" if loc else f"Could not decode body: {msg}"
        else:
            message = None
        return _error_response(InvalidProjectError(message))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception: {exc}")
        return _error_response(BurnsubError("Internal server error"))

    # Routers
    app.include_router(export.router, prefix="/api", tags=["export"])
    app.include_router(video.router, prefix="/video", tags=["video"])

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


configure_logging(get_settings())
app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
