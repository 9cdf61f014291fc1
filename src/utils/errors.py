"""Custom exception hierarchy for Lectern.

All application exceptions inherit from :class:`LecternError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "gemini", "sqlite", "pymupdf") caused the failure.

The hierarchy is organized by ingestion stage:

    LecternError  (base -- catch-all for any Lectern error)
    +-- UnsupportedFormatError    (validation: unknown or disallowed type)
    +-- FileTooLargeError         (validation: size ceiling exceeded)
    +-- ExtractionFailedError     (extraction: reader raised)
    +-- InsufficientContentError  (extraction: too little readable text)
    +-- RateLimitError            (one provider call was rate limited)
    +-- AllModelsRateLimitedError (every candidate model exhausted retries)
    +-- ProviderError             (non-rate-limit LLM provider failure)
    +-- EmptyResponseError        (LLM returned no usable text)
    +-- ChunkingFailedError       (no usable chapters after repair)
    +-- PersistenceFailedError    (atomic course write failed)
    +-- ConfigurationError        (startup / missing config)
    +-- CourseNotFoundError       (lookup of an unknown course)
    +-- CourseAccessDeniedError   (course owned by another user)

The messages on these exceptions are the sanitised, caller-visible strings.
Raw provider or database errors stay in the logs and in ``__cause__``.
"""


class LecternError(Exception):
    """Base exception for all Lectern errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[gemini] Empty response from model``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Validation errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(LecternError):
    """Raised when a file type is not recognised or not in the allowed set."""

    def __init__(
        self,
        message: str = "Unsupported file format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class FileTooLargeError(LecternError):
    """Raised when an upload exceeds the configured size ceiling."""

    def __init__(
        self,
        message: str = "File too large",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionFailedError(LecternError):
    """Raised when the text extractor fails on an otherwise valid upload."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InsufficientContentError(LecternError):
    """Raised when the extracted text is too short to build a course from."""

    def __init__(
        self,
        message: str = (
            "The uploaded document does not contain enough readable text "
            "to create a course."
        ),
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# LLM provider errors
# ---------------------------------------------------------------------------

class RateLimitError(LecternError):
    """Raised by a provider adapter when a single call is rate limited.

    :class:`~src.services.generation.model_fallback_client.ModelFallbackClient`
    catches this to back off, retry, and eventually fall back to the next
    model.  It never reaches HTTP callers directly.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AllModelsRateLimitedError(LecternError):
    """Raised when every candidate model exhausted its retry budget.

    This is a transient capacity problem; callers may retry later.
    """

    def __init__(
        self,
        message: str = "All AI models are rate-limited. Please try again in a minute.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderError(LecternError):
    """Raised when an LLM provider call fails for a reason other than rate limiting."""

    def __init__(
        self,
        message: str = "AI provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyResponseError(LecternError):
    """Raised when an LLM provider answers successfully but with no text."""

    def __init__(
        self,
        message: str = "Empty response from AI model",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Chunking / persistence errors
# ---------------------------------------------------------------------------

class ChunkingFailedError(LecternError):
    """Raised when model output cannot be turned into any usable chapter.

    Kept distinct from :class:`ProviderError` so callers can tell "model
    unreachable" apart from "model output unusable".
    """

    def __init__(
        self,
        message: str = "Could not split the document into chapters",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceFailedError(LecternError):
    """Raised when the atomic course + chapters write fails."""

    def __init__(
        self,
        message: str = "Failed to save the course. Please try again later.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration / course access errors
# ---------------------------------------------------------------------------

class ConfigurationError(LecternError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CourseNotFoundError(LecternError):
    """Raised when a course id does not exist in the store."""

    def __init__(
        self,
        message: str = "Course not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CourseAccessDeniedError(LecternError):
    """Raised when a user touches a course owned by someone else."""

    def __init__(
        self,
        message: str = "Unauthorized",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
