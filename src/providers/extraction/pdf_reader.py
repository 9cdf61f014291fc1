"""Plain-text reader for PDF documents.

Reads PDF bytes using PyMuPDF (fitz) and extracts text page-by-page.
Pages are joined with a blank line so the chunker sees paragraph breaks
at page boundaries.  Scanned PDFs without a text layer come back empty;
the ingestion service rejects those as insufficient content.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.models.course import ExtractionResult

logger = structlog.get_logger(logger_name=__name__)


class PDFReader:
    """Extracts the text layer of a PDF held in memory."""

    def read(self, data: bytes) -> ExtractionResult:
        """Extract text from every page of the PDF in *data*.

        Parameters
        ----------
        data:
            Raw PDF bytes.

        Returns
        -------
        ExtractionResult
            Joined page text plus ``pageCount`` and, when the document
            declares one, ``title``.

        Raises
        ------
        Exception
            Whatever PyMuPDF raises for a corrupt or encrypted file.
        """
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            pages: list[str] = []
            for page_num in range(len(doc)):
                page_text = doc[page_num].get_text("text").strip()
                if page_text:
                    pages.append(page_text)

            metadata: dict = {"pageCount": len(doc)}
            doc_meta = doc.metadata if isinstance(doc.metadata, dict) else {}
            if doc_meta.get("title"):
                metadata["title"] = doc_meta["title"]
        finally:
            doc.close()

        text = "\n\n".join(pages)
        logger.info("pdf_text_extracted", pages=metadata["pageCount"], chars=len(text))
        return ExtractionResult(text=text, metadata=metadata)
