"""Document text extraction: PDF (PyMuPDF), EPUB (ebooklib + BeautifulSoup), plain text."""

from src.providers.extraction.document_extractor import DocumentTextExtractor
from src.providers.extraction.epub_reader import EPUBReader
from src.providers.extraction.pdf_reader import PDFReader
from src.providers.extraction.plain_text_reader import PlainTextReader

__all__ = ["DocumentTextExtractor", "EPUBReader", "PDFReader", "PlainTextReader"]
