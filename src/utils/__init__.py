"""Utility modules for Lectern.

- **errors** -- Domain-specific exception hierarchy rooted at LecternError;
  each ingestion stage raises its own subclass so callers (the HTTP layer,
  the CLI) can map failures without inspecting messages.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AllModelsRateLimitedError,
    ChunkingFailedError,
    ConfigurationError,
    CourseAccessDeniedError,
    CourseNotFoundError,
    EmptyResponseError,
    ExtractionFailedError,
    FileTooLargeError,
    InsufficientContentError,
    LecternError,
    PersistenceFailedError,
    ProviderError,
    RateLimitError,
    UnsupportedFormatError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "AllModelsRateLimitedError",
    "ChunkingFailedError",
    "ConfigurationError",
    "CourseAccessDeniedError",
    "CourseNotFoundError",
    "EmptyResponseError",
    "ExtractionFailedError",
    "FileTooLargeError",
    "InsufficientContentError",
    "LecternError",
    "PersistenceFailedError",
    "ProviderError",
    "RateLimitError",
    "UnsupportedFormatError",
    "configure_logging",
    "get_logger",
]
