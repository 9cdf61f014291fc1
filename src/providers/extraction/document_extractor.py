"""Text extractor that dispatches on file type.

Detects a file's type from its extension and hands the bytes to the
matching reader.  Readers are synchronous library calls (PyMuPDF,
ebooklib), so extraction runs in a worker thread to keep the event loop
free while a large document is parsed.
"""

from __future__ import annotations

import asyncio
import os
from typing import Protocol

import structlog

from src.interfaces.text_extractor import ITextExtractor
from src.models.course import ExtractionResult
from src.providers.extraction.epub_reader import EPUBReader
from src.providers.extraction.pdf_reader import PDFReader
from src.providers.extraction.plain_text_reader import PlainTextReader

logger = structlog.get_logger(logger_name=__name__)

# Every type the detector can name.  Only some have a reader; the file
# validator rejects the rest with a format-specific message.
_EXTENSION_TYPES: dict[str, str] = {
    ".pdf": "pdf",
    ".txt": "txt",
    ".text": "txt",
    ".epub": "epub",
    ".docx": "docx",
    ".doc": "doc",
    ".md": "md",
    ".markdown": "md",
    ".rtf": "rtf",
}


class _Reader(Protocol):
    def read(self, data: bytes) -> ExtractionResult: ...


class DocumentTextExtractor(ITextExtractor):
    """Extension-based type detection plus per-format readers."""

    def __init__(self, readers: dict[str, _Reader] | None = None) -> None:
        self._readers: dict[str, _Reader] = readers or {
            "pdf": PDFReader(),
            "epub": EPUBReader(),
            "txt": PlainTextReader(),
        }

    def detect_file_type(self, file_name: str) -> str | None:
        _, ext = os.path.splitext(file_name or "")
        return _EXTENSION_TYPES.get(ext.lower())

    def supported_types(self) -> list[str]:
        """File types this extractor can actually read."""
        return sorted(self._readers)

    async def extract_text(self, data: bytes, file_type: str) -> ExtractionResult:
        reader = self._readers.get(file_type)
        if reader is None:
            raise ValueError(f"No reader registered for file type '{file_type}'")

        result = await asyncio.to_thread(reader.read, data)
        logger.debug("document_extracted", file_type=file_type, chars=len(result.text))
        return result

    def get_provider_name(self) -> str:
        return "document-extractor"
