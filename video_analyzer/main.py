"""
FastAPI application for the YouTube Analyzer.

Accepts a YouTube URL, screenshots the playing video, transcribes its audio,
scores each transcript segment for AI-generated content and serves the result
for polling.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from video_analyzer.api.v1.endpoints import router as api_v1_router
from video_analyzer.config import configure_structlog, settings
from video_analyzer.core.task_store import initialize_store
from video_analyzer.services.factory import create_services

configure_structlog()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    logger.info(
        "YouTube Analyzer API starting up",
        version=settings.api_version,
        environment=settings.get_environment_display(),
        port=settings.port,
    )

    for directory in settings.output_dirs():
        directory.mkdir(parents=True, exist_ok=True)

    store = initialize_store(ttl_hours=settings.task_ttl_hours)
    app.state.services = create_services(settings, store)

    for name, configured in (
        ("ELEVENLABS_API_KEY", settings.elevenlabs_api_key),
        ("GPTZERO_API_KEY", settings.gptzero_api_key),
    ):
        if not configured:
            logger.warning(f"{name} not configured - analyses will fail at that stage")

    yield

    logger.info("YouTube Analyzer API shutting down")
    await app.state.services.aclose()


app = FastAPI(
    title=settings.app_name,
    description="Screenshot, transcribe and AI-detect YouTube videos.",
    version=settings.api_version,
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production() else None,
    redoc_url="/redoc" if not settings.is_production() else None,
    openapi_url="/openapi.json" if not settings.is_production() else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected malformed request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request body"},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.get("/", tags=["Root"])
async def root():
    """Basic service information."""
    return {
        "service": settings.app_name,
        "version": settings.api_version,
        "environment": settings.get_environment_display(),
        "status": "operational",
        "endpoints": {
            "analyze": "POST /analyze",
            "result": "GET /result/{task_id}",
            "health": "GET /health",
        },
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "video_analyzer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,  # Use our structured logging
    )


if __name__ == "__main__":
    run()
