"""Lectern API layer - routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    CourseDetailResponse,
    CourseListResponse,
    ErrorResponse,
    HealthResponse,
    IngestResponse,
    UpdateProgressRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "CourseDetailResponse",
    "CourseListResponse",
    "ErrorResponse",
    "HealthResponse",
    "IngestResponse",
    "UpdateProgressRequest",
]
