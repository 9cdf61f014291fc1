"""Upload validation: file type and size checks.

Runs before any extraction or AI work so that a bad upload costs nothing
beyond this check.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.interfaces.text_extractor import ITextExtractor
from src.utils.errors import FileTooLargeError, UnsupportedFormatError

DEFAULT_ALLOWED_TYPES: tuple[str, ...] = ("pdf", "txt", "epub")
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class FileValidator:
    """Checks an upload's name and size against the ingestion policy.

    Type detection is delegated to the text extractor, which can name more
    types (``docx``, ``md`` ...) than are allowed for ingestion.
    """

    def __init__(
        self,
        extractor: ITextExtractor,
        allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self._extractor = extractor
        self._allowed_types = tuple(t.lower() for t in allowed_types)
        self._max_bytes = max_bytes

    @property
    def allowed_types(self) -> tuple[str, ...]:
        return self._allowed_types

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def validate(self, file_name: str, file_size_bytes: int) -> str:
        """Return the detected file type if the upload may be ingested.

        Raises
        ------
        UnsupportedFormatError
            The type is unknown or not in the allowed set.
        FileTooLargeError
            The file exceeds the size ceiling (a file of exactly the ceiling passes).
        """
        supported = ", ".join(self._allowed_types).upper()
        file_type = self._extractor.detect_file_type(file_name)

        if not file_type:
            raise UnsupportedFormatError(
                message=f"Unsupported file format. Supported: {supported}"
            )
        if file_type not in self._allowed_types:
            raise UnsupportedFormatError(
                message=f"Unsupported file type: .{file_type}. Supported: {supported}"
            )
        if file_size_bytes > self._max_bytes:
            size_mb = file_size_bytes / 1024 / 1024
            limit_mb = self._max_bytes / 1024 / 1024
            raise FileTooLargeError(
                message=f"File too large ({size_mb:.1f}MB). Maximum allowed: {limit_mb:g}MB"
            )
        return file_type
