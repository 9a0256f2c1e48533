"""FastAPI dependencies for the v1 routes."""

import json
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from video_analyzer.api.v1.schemas import AnalyzeRequest
from video_analyzer.pipeline.orchestrator import AnalysisPipeline
from video_analyzer.pipeline.runner import TaskRunner
from video_analyzer.services.factory import Services
from video_analyzer.services.video_probe import YouTubeProber


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized; is the app lifespan running?")
    return services


def get_pipeline(request: Request) -> AnalysisPipeline:
    return get_services(request).pipeline


def get_runner(request: Request) -> TaskRunner:
    return get_services(request).runner


def get_prober(request: Request) -> YouTubeProber:
    return get_services(request).prober


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


async def get_analyze_request(request: Request) -> AnalyzeRequest | None:
    """Read an analysis submission from a JSON or urlencoded form body.

    An empty body yields None. Bodies that cannot be parsed raise
    ``RequestValidationError`` so they share the malformed-body response.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await request.form()
        data: Any = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        body = await request.body()
        if not body.strip():
            return None
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error"}]
            ) from exc

    if data is None:
        return None

    try:
        return AnalyzeRequest.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc
