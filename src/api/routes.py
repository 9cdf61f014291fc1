"""FastAPI API routes for Lectern.

Provides REST endpoints for document ingestion, course and chapter
retrieval, chapter progress, and health checks.  Service dependencies are
resolved from ``app.state`` via FastAPI's ``Depends`` using the
``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                      Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/courses/ingest                        POST    Upload document → course
# /api/v1/courses                               GET     Caller's courses
# /api/v1/courses/{cid}                         GET     Course + chapter list
# /api/v1/courses/{cid}/chapters/{chapterId}    GET     One full chapter
# /api/v1/courses/{cid}/progress                GET     Chapter progress
# /api/v1/courses/{cid}/progress                PUT     Mark chapter (un)done
# /api/v1/health                                GET     Health + provider status
#
# IDENTITY:
# The caller is identified by the X-User-Id header, defaulting to
# "anonymous".  Authentication is handled in front of this service.
#
# ERRORS:
# Domain errors (LecternError subclasses) are raised straight out of the
# handlers and turned into JSON by ErrorHandlingMiddleware.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request, UploadFile

from src.api.schemas import (
    CourseDetailResponse,
    CourseListResponse,
    ErrorResponse,
    HealthResponse,
    IngestResponse,
    UpdateProgressRequest,
)
from src.interfaces.course_store import ICourseStore
from src.models.course import CourseProgress, StoredChapter, UploadedFile
from src.services.ingestion.file_validator import FileValidator
from src.services.ingestion.ingestion_service import CourseIngestionService
from src.services.progress_service import ProgressService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# All routes in this file are prefixed with /api/v1.
router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"

# Read uploads in 64 KB increments so an oversized file is rejected
# without buffering all of it.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_ANONYMOUS_USER = "anonymous"


# ---------------------------------------------------------------------------
# Dependency injection helpers - resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> CourseIngestionService:
    """Return the ingestion orchestrator from application state."""
    return request.app.state.ingestion_service


def _get_file_validator(request: Request) -> FileValidator:
    """Return the upload validator from application state."""
    return request.app.state.file_validator


def _get_course_store(request: Request) -> ICourseStore:
    """Return the course store from application state."""
    return request.app.state.course_store


def _get_progress_service(request: Request) -> ProgressService:
    """Return the progress service from application state."""
    return request.app.state.progress_service


def _get_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> str:
    """Return the caller's user id, or ``anonymous`` when none is sent."""
    return (x_user_id or "").strip() or _ANONYMOUS_USER


IngestionServiceDep = Annotated[CourseIngestionService, Depends(_get_ingestion_service)]
FileValidatorDep = Annotated[FileValidator, Depends(_get_file_validator)]
CourseStoreDep = Annotated[ICourseStore, Depends(_get_course_store)]
ProgressServiceDep = Annotated[ProgressService, Depends(_get_progress_service)]
UserIdDep = Annotated[str, Depends(_get_user_id)]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post(
    "/courses/ingest",
    response_model=IngestResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Upload a PDF, TXT or EPUB document and turn it into a course",
)
async def ingest_course(
    file: UploadFile,
    service: IngestionServiceDep,
    validator: FileValidatorDep,
    user_id: UserIdDep,
) -> IngestResponse:
    """Run the ingestion pipeline on the uploaded file."""
    file_name = file.filename or ""
    if not file_name:
        raise HTTPException(status_code=400, detail="No file provided")

    # --- Stream upload in chunks - reject oversized files early -------
    # Once the running size passes the ceiling the validator is called
    # with that size, which raises before the rest is read.
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > validator.max_bytes:
            validator.validate(file_name, total_size)
        chunks.append(chunk)
    upload = UploadedFile(name=file_name, size_bytes=total_size, data=b"".join(chunks))
    del chunks

    summary = await service.ingest(upload.data, upload.name, upload.size_bytes, user_id)

    return IngestResponse(
        **summary.model_dump(),
        message=f'Course "{summary.title}" created with {summary.chapter_count} chapters!',
    )


# ---------------------------------------------------------------------------
# Courses and chapters
# ---------------------------------------------------------------------------


@router.get(
    "/courses",
    response_model=CourseListResponse,
    summary="List the caller's ingested courses",
)
async def list_courses(store: CourseStoreDep, user_id: UserIdDep) -> CourseListResponse:
    courses = await store.list_courses(user_id)
    return CourseListResponse(courses=courses, count=len(courses))


@router.get(
    "/courses/{course_id}",
    response_model=CourseDetailResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get one course with its chapter list",
)
async def get_course(
    course_id: str,
    store: CourseStoreDep,
    progress_service: ProgressServiceDep,
    user_id: UserIdDep,
) -> CourseDetailResponse:
    """Return course metadata and chapter summaries; chapter content is fetched separately."""
    course = await progress_service.get_owned_course(course_id, user_id)
    chapters = await store.get_chapters(course_id)
    return CourseDetailResponse(
        course=course,
        chapters=[ch.to_summary() for ch in chapters],
    )


@router.get(
    "/courses/{course_id}/chapters/{chapter_id}",
    response_model=StoredChapter,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get one chapter including its content",
)
async def get_chapter(
    course_id: str,
    chapter_id: str,
    store: CourseStoreDep,
    progress_service: ProgressServiceDep,
    user_id: UserIdDep,
) -> StoredChapter:
    await progress_service.get_owned_course(course_id, user_id)
    chapter = await store.get_chapter(course_id, chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail="Chapter not found")
    return chapter


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@router.get(
    "/courses/{course_id}/progress",
    response_model=CourseProgress,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get the caller's chapter progress on a course",
)
async def get_progress(
    course_id: str,
    progress_service: ProgressServiceDep,
    user_id: UserIdDep,
) -> CourseProgress:
    return await progress_service.get_progress(course_id, user_id)


@router.put(
    "/courses/{course_id}/progress",
    response_model=CourseProgress,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Mark a chapter as completed or not completed",
)
async def update_progress(
    course_id: str,
    body: UpdateProgressRequest,
    progress_service: ProgressServiceDep,
    user_id: UserIdDep,
) -> CourseProgress:
    try:
        return await progress_service.update_progress(
            course_id,
            user_id,
            chapter_number=body.chapter_number,
            completed=body.completed,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and AI provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    status = "healthy" if providers.get("llm", False) else "degraded"
    return HealthResponse(status=status, version=_VERSION, providers=providers)
