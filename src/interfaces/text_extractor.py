"""Abstract base class for document text extraction.

The ingestion service treats extraction as a collaborator: it asks for a
file type by name, validates it, then hands over the raw bytes.  Format
parsing lives behind this interface (see
:class:`~src.providers.extraction.document_extractor.DocumentTextExtractor`).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.course import ExtractionResult


class ITextExtractor(ABC):
    """Contract for type detection and text extraction."""

    @abstractmethod
    def detect_file_type(self, file_name: str) -> str | None:
        """Return a short type label (``"pdf"``, ``"docx"`` ...) or ``None``.

        A recognised label does not mean the type can be extracted; the
        file validator decides what is allowed.
        """

    @abstractmethod
    async def extract_text(self, data: bytes, file_type: str) -> ExtractionResult:
        """Extract plain text and metadata from *data*.

        Raises
        ------
        Exception
            Any reader failure.  The ingestion service wraps these as
            :class:`~src.utils.errors.ExtractionFailedError`.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this extractor."""
