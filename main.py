"""
Overdue-task rescheduler - Main Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rescheduler.core.config import get_settings
from rescheduler.core.exceptions import (
    AuthenticationError,
    BusinessLogicError,
    InfrastructureError,
    NotFoundError,
    ReschedulerError,
    ValidationError,
)
from rescheduler.core.logger import logger

ERROR_STATUS_CODES = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (BusinessLogicError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (InfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info(f"Starting rescheduler in {settings.ENVIRONMENT} mode...")

    if settings.is_local:
        from rescheduler.infrastructure.local.database import init_db

        await init_db()

    from rescheduler.services.background_scheduler import (
        start_background_scheduler,
        stop_background_scheduler,
    )

    await start_background_scheduler()

    yield

    logger.info("Shutting down rescheduler...")
    await stop_background_scheduler()


async def rescheduler_error_handler(request: Request, exc: ReschedulerError) -> JSONResponse:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "details": exc.details},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Overdue Task Rescheduler",
        description="Detects overdue schedule entries and proposes new slots",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ReschedulerError, rescheduler_error_handler)

    from rescheduler.api import reschedules, workday_settings

    app.include_router(reschedules.router, prefix="/api/reschedules", tags=["reschedules"])
    app.include_router(workday_settings.router, prefix="/api/settings", tags=["settings"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
