"""Pydantic schemas for API v1 - Simple DTOs only."""

from pydantic import BaseModel

from video_analyzer.core.task_store import TaskStatus


class AnalyzeRequest(BaseModel):
    """Analysis submission."""

    url: str | None = None


class AnalyzeResponse(BaseModel):
    """Task creation response."""

    task_id: str
    status: TaskStatus
    message: str


class ErrorResponse(BaseModel):
    """Error envelope used by every non-2xx response."""

    error: str


class HealthStatus(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    service: str
    version: str
