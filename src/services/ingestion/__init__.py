"""Course ingestion pipeline.

Orchestrates the full pipeline: **validate -> extract -> generate -> chunk -> persist**.

Pipeline stages overview:

1. **Validate** (file_validator.py / FileValidator) -- Rejects unsupported
   types and oversized uploads before any expensive work.

2. **Extract** (via ITextExtractor) -- Format-specific readers turn PDF,
   EPUB and plain-text bytes into plain text plus metadata.

3. **Generate** (src/services/generation/) -- Course title and
   description, requested concurrently through the ModelFallbackClient.

4. **Chunk** (content_chunker.py / ContentChunker) -- One AI call returns
   chapter boundaries; chapter_repair.py parses, repairs and post-processes
   the response into contiguous, 1-based chapters with computed word counts.

5. **Persist** (via ICourseStore) -- The course and all chapters are
   written in one atomic transaction.

The CourseIngestionService class orchestrates all five stages.
"""

from src.services.ingestion.content_chunker import ContentChunker
from src.services.ingestion.file_validator import FileValidator
from src.services.ingestion.ingestion_service import CourseIngestionService

__all__ = [
    "ContentChunker",
    "CourseIngestionService",
    "FileValidator",
]
