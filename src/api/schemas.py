"""Pydantic request/response schemas for the Lectern API.

Defines the public contract for all REST endpoints: ingestion, course and
chapter retrieval, progress, health, and errors.

Response bodies use camelCase field names (``courseId``, ``chapterCount``)
so they line up with the persisted course layout.  Domain models from
``src.models.course`` are reused directly wherever the shapes match.

Convention: Request schemas end with "Request", response schemas end with
"Response".
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.course import ChapterSummary, CourseRecord, IngestionSummary

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestResponse(IngestionSummary):
    """Summary of a newly ingested course plus a human-readable message."""

    success: bool = True
    message: str


class CourseListResponse(BaseModel):
    """All courses owned by the caller, newest first."""

    model_config = _CAMEL

    courses: list[CourseRecord] = Field(default_factory=list)
    count: int = 0


class CourseDetailResponse(BaseModel):
    """One course with its chapter list (no chapter content)."""

    model_config = _CAMEL

    course: CourseRecord
    chapters: list[ChapterSummary] = Field(default_factory=list)


class UpdateProgressRequest(BaseModel):
    """Mark a chapter as completed or not completed."""

    model_config = _CAMEL

    chapter_number: int = Field(ge=1)
    completed: bool


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
