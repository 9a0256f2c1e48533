"""
API v1 endpoints for the YouTube Analyzer.

Submitting a URL creates a queued task and starts the analysis pipeline in the
background; clients poll ``/result/{task_id}`` until the task is completed or
errored.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
import structlog

from video_analyzer.api.v1.dependencies import (
    get_analyze_request,
    get_pipeline,
    get_prober,
    get_runner,
)
from video_analyzer.api.v1.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    HealthStatus,
)
from video_analyzer.config import settings
from video_analyzer.core.exceptions import VideoUnavailableError
from video_analyzer.core.task_store import (
    Task,
    TaskStatus,
    TaskStore,
    get_task_store,
    utc_timestamp,
)
from video_analyzer.core.url_validator import is_valid_youtube_url
from video_analyzer.pipeline.orchestrator import AnalysisPipeline
from video_analyzer.pipeline.runner import TaskRunner
from video_analyzer.services.video_probe import YouTubeProber

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["v1"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}

# Request body read by get_analyze_request (JSON or urlencoded form)
ANALYZE_REQUEST_BODY = {
    "requestBody": {
        "required": False,
        "content": {
            "application/json": {"schema": AnalyzeRequest.model_json_schema()},
            "application/x-www-form-urlencoded": {
                "schema": AnalyzeRequest.model_json_schema()
            },
        },
    }
}


# ===============================================================================
# Analysis Endpoints
# ===============================================================================


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses=ERROR_RESPONSES,
    openapi_extra=ANALYZE_REQUEST_BODY,
)
async def analyze(
    payload: AnalyzeRequest | None = Depends(get_analyze_request),
    store: TaskStore = Depends(get_task_store),
    prober: YouTubeProber = Depends(get_prober),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
    runner: TaskRunner = Depends(get_runner),
) -> AnalyzeResponse:
    """
    Submit a YouTube URL for analysis.

    The URL is checked against known YouTube hosts and probed for
    reachability before a task is created. The pipeline then runs in the
    background.

    - **url**: YouTube watch or short link, as a JSON or form field
    - **Returns**: Task ID for polling `/result/{task_id}`
    """
    url = (payload.url or "").strip() if payload else ""

    if not url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="YouTube URL is required"
        )

    if not is_valid_youtube_url(url):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid YouTube URL"
        )

    try:
        await prober.probe(url)
    except VideoUnavailableError as err:
        logger.info("Video unreachable", url=url, error=str(err))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unable to access YouTube video: {err}",
        ) from err

    task_id = str(uuid.uuid4())
    await store.create(Task.queued(task_id, url))

    runner.spawn(task_id, pipeline.run(task_id, url))

    logger.info("Analysis task queued", task_id=task_id, url=url)

    return AnalyzeResponse(
        task_id=task_id,
        status=TaskStatus.QUEUED,
        message=f"Analysis started. Use GET /result/{task_id} to check progress.",
    )


@router.get(
    "/result/{task_id}",
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def get_result(
    task_id: str, store: TaskStore = Depends(get_task_store)
) -> JSONResponse:
    """Return the current state of a task, including results once completed."""
    task = await store.get(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Task not found"
        )
    return JSONResponse(content=task.to_dict())


# ===============================================================================
# Health Check
# ===============================================================================


@router.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """Liveness probe. Does not check external dependencies."""
    return HealthStatus(
        status="healthy",
        timestamp=utc_timestamp(),
        service=settings.app_name,
        version=settings.api_version,
    )
