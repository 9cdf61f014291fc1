"""Plain-text reader for EPUB books.

Uses ebooklib to walk the document items of the book and BeautifulSoup to
strip the XHTML markup.  ebooklib reads from a path, so the uploaded bytes
are spooled to a temporary file for the duration of the read.
"""

from __future__ import annotations

import os
import re
import tempfile

import ebooklib
import structlog
from bs4 import BeautifulSoup
from ebooklib import epub

from src.models.course import ExtractionResult

logger = structlog.get_logger(logger_name=__name__)

# Collapse excessive whitespace while preserving paragraph breaks.
_MULTI_NEWLINE = re.compile(r"\n{3,}")
_MULTI_SPACE = re.compile(r"[ \t]{2,}")


def _html_to_text(html_content: str) -> str:
    soup = BeautifulSoup(html_content, "html.parser")
    text = soup.get_text(separator="\n")
    text = _MULTI_SPACE.sub(" ", text)
    text = _MULTI_NEWLINE.sub("\n\n", text)
    return text.strip()


class EPUBReader:
    """Extracts the readable text of every document item in an EPUB."""

    def read(self, data: bytes) -> ExtractionResult:
        """Extract text from the EPUB in *data*.

        Items that carry no text (cover pages, image wrappers) are skipped.

        Raises
        ------
        Exception
            Whatever ebooklib raises for a malformed archive.
        """
        fd, path = tempfile.mkstemp(suffix=".epub")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            book = epub.read_epub(path, options={"ignore_ncx": True})
        finally:
            os.unlink(path)

        sections: list[str] = []
        for item in book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
            html_content = item.get_content().decode("utf-8", errors="replace")
            text = _html_to_text(html_content)
            if text:
                sections.append(text)

        metadata: dict = {"sectionCount": len(sections)}
        titles = book.get_metadata("DC", "title")
        if titles:
            metadata["title"] = titles[0][0]

        if not sections:
            logger.warning("epub_no_text_extracted")

        text = "\n\n".join(sections)
        logger.info("epub_text_extracted", sections=len(sections), chars=len(text))
        return ExtractionResult(text=text, metadata=metadata)
