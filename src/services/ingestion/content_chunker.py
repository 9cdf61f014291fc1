"""AI-assisted splitting of extracted text into ordered course chapters.

The model is asked for chapter *boundaries* rather than chapter text: for
each chapter it returns a title, a short summary and ``startsWith``, the
verbatim opening words of the chapter.  The chapters are then sliced out
of the original text at those anchors, so nothing the model paraphrases or
drops can leak into stored content and the chapters always cover the whole
document.  Responses that carry inline ``content`` instead are accepted
as well.

Parsing and every repair step live in :mod:`chapter_repair`; this module
only builds the prompt and sequences the steps.
"""

from __future__ import annotations

import structlog

from src.models.course import Chapter
from src.models.generation import GenerationConfig
from src.services.generation.model_fallback_client import ModelFallbackClient
from src.services.ingestion.chapter_repair import (
    drop_empty_chapters,
    fill_missing_titles,
    measure_coverage,
    parse_chapter_payload,
    renumber_chapters,
    resolve_content,
)
from src.utils.errors import ChunkingFailedError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_INPUT_CHARS = 60_000
_MIN_INLINE_COVERAGE = 0.9

_CHUNK_CONFIG = GenerationConfig(temperature=0.3, max_output_tokens=8192)

_CHUNK_PROMPT = """\
You are structuring a document into an online course.  Split the document
below (file: "{file_name}") into logically coherent chapters, in reading
order.  Aim for between 3 and 15 chapters depending on length; follow the
document's own headings where it has them.

Respond with JSON only, in exactly this shape:
{{"chapters": [
  {{"chapterNumber": 1,
    "title": "Short chapter title",
    "summary": "One or two sentences on what the chapter covers.",
    "startsWith": "The first 8-12 words of the chapter, copied verbatim"}}
]}}

"startsWith" MUST be copied character-for-character from the document so
the chapter can be located in it.  Do not include the chapter text itself.

Document:
---
{text}
---"""


class ContentChunker:
    """Turns document text into a contiguous, 1-based list of :class:`Chapter`.

    Parameters
    ----------
    client:
        The structuring client used for the single chunking prompt.
    max_input_chars:
        How much of the document is shown to the model.  Chapters still
        cover the full text because the last chapter runs to the end.
    """

    def __init__(
        self,
        client: ModelFallbackClient,
        max_input_chars: int = _DEFAULT_MAX_INPUT_CHARS,
    ) -> None:
        self._client = client
        self._max_input_chars = max_input_chars

    async def chunk(self, text: str, source_file_name: str) -> list[Chapter]:
        """Split *text* into chapters.

        Raises
        ------
        ChunkingFailedError
            The response could not be parsed, or no chapter had content.
        AllModelsRateLimitedError, ProviderError, EmptyResponseError
            Propagated unchanged from the structuring client.
        """
        excerpt = text[: self._max_input_chars]
        if len(text) > self._max_input_chars:
            logger.info(
                "chunker_input_truncated",
                total_chars=len(text),
                sent_chars=self._max_input_chars,
            )

        prompt = _CHUNK_PROMPT.format(file_name=source_file_name, text=excerpt)
        raw = await self._client.generate(prompt, _CHUNK_CONFIG)

        drafts = parse_chapter_payload(raw)
        inline = bool(drafts) and all(d.content and d.content.strip() for d in drafts)

        drafts = resolve_content(drafts, text)
        drafts = drop_empty_chapters(drafts)
        drafts = fill_missing_titles(drafts)
        if not drafts:
            raise ChunkingFailedError(
                message="The AI response did not contain any usable chapters."
            )

        chapters = renumber_chapters(drafts)

        if inline:
            coverage = measure_coverage(chapters, text)
            if coverage < _MIN_INLINE_COVERAGE:
                logger.warning("chapter_coverage_low", coverage=round(coverage, 3))

        logger.info(
            "content_chunked",
            chapters=len(chapters),
            mode="inline" if inline else "anchored",
        )
        return chapters
