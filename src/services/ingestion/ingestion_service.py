"""Orchestrator for the course ingestion pipeline.

Pipeline stages: **validate -> extract -> generate -> chunk -> aggregate -> persist**.

The :class:`CourseIngestionService` implements the **Orchestrator pattern**:
it coordinates five collaborators (file validator, text extractor, copy
generator, content chunker, course store) without any of them knowing
about each other.  One call to :meth:`~CourseIngestionService.ingest` runs
as an explicit three-stage plan:

    1. Title and description generation, concurrently (both must succeed)
    2. Chunking (independent of stage 1's output)
    3. Aggregate metrics and persist course + chapters in one atomic write

Every step fails closed: nothing is written unless every earlier step
succeeded, and the only write is the final atomic one.  There are no
retries at this level; rate-limit retries live in the
:class:`~src.services.generation.model_fallback_client.ModelFallbackClient`.

All dependencies are injected via constructor (Dependency Injection), so
providers can be swapped (e.g. Gemini -> Anthropic) without changing this class.
"""

from __future__ import annotations

import asyncio
import math

import structlog

from src.interfaces.course_store import ICourseStore
from src.interfaces.text_extractor import ITextExtractor
from src.models.course import (
    Chapter,
    CourseMetadata,
    CourseSource,
    ExtractionResult,
    IngestionSummary,
    NewCourse,
)
from src.models.pipeline import IngestionStage
from src.services.generation.course_copy_generator import CourseCopyGenerator
from src.services.ingestion.content_chunker import ContentChunker
from src.services.ingestion.file_validator import FileValidator
from src.utils.errors import (
    ExtractionFailedError,
    InsufficientContentError,
    PersistenceFailedError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MIN_CONTENT_CHARS = 100
_DEFAULT_WORDS_PER_MINUTE = 200


class CourseIngestionService:
    """Turns one uploaded document into a persisted course with chapters.

    Parameters
    ----------
    validator:
        Type and size policy; runs before anything else.
    extractor:
        Reads plain text out of the uploaded bytes.
    copy_generator:
        Produces the course title and description.
    chunker:
        Splits the text into ordered chapters.
    store:
        Persists the course and its chapters atomically.
    min_content_chars:
        Extracted text shorter than this is rejected.
    words_per_minute:
        Reading speed used for ``estimatedReadingTime``.
    """

    def __init__(
        self,
        validator: FileValidator,
        extractor: ITextExtractor,
        copy_generator: CourseCopyGenerator,
        chunker: ContentChunker,
        store: ICourseStore,
        min_content_chars: int = _DEFAULT_MIN_CONTENT_CHARS,
        words_per_minute: int = _DEFAULT_WORDS_PER_MINUTE,
    ) -> None:
        self._validator = validator
        self._extractor = extractor
        self._copy_generator = copy_generator
        self._chunker = chunker
        self._store = store
        self._min_content_chars = min_content_chars
        self._words_per_minute = words_per_minute

    async def ingest(
        self,
        data: bytes,
        file_name: str,
        file_size_bytes: int,
        user_id: str,
    ) -> IngestionSummary:
        """Run the full pipeline for one upload and return the course summary.

        The summary never contains chapter content; that stays in storage.

        Raises
        ------
        UnsupportedFormatError, FileTooLargeError
            The upload failed validation.
        ExtractionFailedError, InsufficientContentError
            No usable text could be read from the file.
        AllModelsRateLimitedError, ProviderError, EmptyResponseError
            AI generation failed.
        ChunkingFailedError
            The model output could not be turned into chapters.
        PersistenceFailedError
            The atomic course write failed; nothing was stored.
        """
        stage = IngestionStage.VALIDATING
        with structlog.contextvars.bound_contextvars(
            file_name=file_name, user_id=user_id, stage=stage.value
        ):
            try:
                self._enter(stage)
                file_type = self._validator.validate(file_name, file_size_bytes)

                stage = self._enter(IngestionStage.EXTRACTING)
                extraction = await self._extract(data, file_type)

                # Stage 1: title + description.  Chunking does not depend on
                # their output and may be moved into this gather.
                stage = self._enter(IngestionStage.GENERATING)
                title, description = await self._generate_copy(file_name, extraction.text)

                # Stage 2: chapters.
                stage = self._enter(IngestionStage.CHUNKING)
                chapters = await self._chunker.chunk(extraction.text, file_name)

                # Stage 3: metrics + the single atomic write.
                stage = self._enter(IngestionStage.AGGREGATING)
                total_words = sum(ch.word_count for ch in chapters)
                reading_time = math.ceil(total_words / self._words_per_minute)
                course = NewCourse(
                    user_id=user_id,
                    title=title,
                    description=description,
                    source=CourseSource(
                        file_name=file_name,
                        file_type=file_type,
                        file_size=file_size_bytes,
                    ),
                    metadata=CourseMetadata(
                        chapter_count=len(chapters),
                        total_words=total_words,
                        estimated_reading_time=reading_time,
                        extraction_metadata=extraction.metadata,
                    ),
                )

                stage = self._enter(IngestionStage.PERSISTING)
                course_id = await self._persist(course, chapters)
            except Exception as exc:
                structlog.contextvars.bind_contextvars(stage=IngestionStage.FAILED.value)
                logger.error(
                    "ingestion_failed",
                    failed_stage=stage.value,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise

            self._enter(IngestionStage.DONE)
            logger.info(
                "ingestion_completed",
                course_id=course_id,
                chapters=len(chapters),
                total_words=total_words,
                estimated_reading_time=reading_time,
            )

        return IngestionSummary(
            course_id=course_id,
            title=title,
            description=description,
            chapter_count=len(chapters),
            total_words=total_words,
            estimated_reading_time=reading_time,
            chapters=[ch.to_summary() for ch in chapters],
        )

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    @staticmethod
    def _enter(stage: IngestionStage) -> IngestionStage:
        structlog.contextvars.bind_contextvars(stage=stage.value)
        logger.info("ingestion_stage")
        return stage

    async def _extract(self, data: bytes, file_type: str) -> ExtractionResult:
        try:
            result = await self._extractor.extract_text(data, file_type)
        except Exception as exc:
            logger.warning("text_extraction_error", error=str(exc))
            raise ExtractionFailedError(
                message=f"Text extraction failed: {exc}",
                provider_name=self._extractor.get_provider_name(),
            ) from exc

        if len(result.text) < self._min_content_chars:
            raise InsufficientContentError()
        logger.info("text_extracted", chars=len(result.text))
        return result

    async def _generate_copy(self, file_name: str, text: str) -> tuple[str, str]:
        # return_exceptions lets both calls finish before an error is raised,
        # so no generation task is left running after a failure.
        title, description = await asyncio.gather(
            self._copy_generator.generate_title(file_name, text),
            self._copy_generator.generate_description(text),
            return_exceptions=True,
        )
        for outcome in (title, description):
            if isinstance(outcome, BaseException):
                raise outcome
        return title, description

    async def _persist(self, course: NewCourse, chapters: list[Chapter]) -> str:
        try:
            return await self._store.create_course(course, chapters)
        except PersistenceFailedError:
            raise
        except Exception as exc:
            raise PersistenceFailedError(provider_name=self._store.get_provider_name()) from exc
