"""Integration tests for CourseIngestionService with in-memory collaborators.

The LLM provider is a mock whose answers come from ``scripted_response``;
everything else (validator, copy generator, chunker, retry client) is the
real implementation.
"""

from __future__ import annotations

import math

import pytest

from src.services.generation.course_copy_generator import CourseCopyGenerator
from src.services.ingestion.content_chunker import ContentChunker
from src.services.ingestion.file_validator import FileValidator
from src.services.ingestion.ingestion_service import CourseIngestionService
from src.utils.errors import (
    AllModelsRateLimitedError,
    ChunkingFailedError,
    ExtractionFailedError,
    FileTooLargeError,
    InsufficientContentError,
    PersistenceFailedError,
    ProviderError,
    RateLimitError,
    UnsupportedFormatError,
)
from tests.conftest import (
    SAMPLE_DESCRIPTION,
    SAMPLE_TEXT,
    SAMPLE_TITLE,
    FakeTextExtractor,
    InMemoryCourseStore,
    scripted_response,
)


def _service(extractor, store, ai_client) -> CourseIngestionService:
    return CourseIngestionService(
        validator=FileValidator(extractor=extractor),
        extractor=extractor,
        copy_generator=CourseCopyGenerator(client=ai_client),
        chunker=ContentChunker(client=ai_client),
        store=store,
    )


async def _ingest(service: CourseIngestionService, name: str = "sourdough.txt", size: int = 2048):
    return await service.ingest(b"raw bytes", name, size, "alice")


# ======================================================================
# Successful ingestion
# ======================================================================


class TestSuccessfulIngestion:
    @pytest.mark.asyncio
    async def test_summary_matches_stored_course(self, ingestion_service, memory_store) -> None:
        summary = await _ingest(ingestion_service)

        assert summary.title == SAMPLE_TITLE
        assert summary.description == SAMPLE_DESCRIPTION
        assert summary.chapter_count == len(summary.chapters) == 3
        assert [c.chapter_number for c in summary.chapters] == [1, 2, 3]
        assert summary.total_words == sum(c.word_count for c in summary.chapters)
        assert summary.total_words == len(SAMPLE_TEXT.split())
        assert summary.estimated_reading_time == math.ceil(summary.total_words / 200)

        record = memory_store.courses[summary.course_id]
        assert record.user_id == "alice"
        assert record.status == "processed"
        assert record.type == "ingested"
        assert record.source.file_type == "txt"
        assert record.source.file_size == 2048
        assert record.metadata.chapter_count == 3

        stored = memory_store.chapters[summary.course_id]
        assert [c.id for c in stored] == ["chapter-1", "chapter-2", "chapter-3"]
        assert all(c.content.strip() for c in stored)

    @pytest.mark.asyncio
    async def test_summary_has_no_chapter_content(self, ingestion_service) -> None:
        summary = await _ingest(ingestion_service)

        dumped = summary.model_dump_json(by_alias=True)

        assert "content" not in dumped
        assert "Feed it flour and water" not in dumped

    @pytest.mark.asyncio
    async def test_two_ingests_get_distinct_ids(self, ingestion_service, memory_store) -> None:
        first = await _ingest(ingestion_service)
        second = await _ingest(ingestion_service)

        assert first.course_id != second.course_id
        assert len(memory_store.courses) == 2

    @pytest.mark.asyncio
    async def test_reading_time_rounds_up(self, memory_store, ai_client) -> None:
        # 201 words at 200 wpm is two minutes, not one.
        text = "Getting started with sourdough. " + "word " * 197
        service = _service(FakeTextExtractor(text=text), memory_store, ai_client)

        summary = await _ingest(service)

        assert summary.total_words == 201
        assert summary.estimated_reading_time == 2

    @pytest.mark.asyncio
    async def test_rate_limited_call_recovers(
        self, ingestion_service, mock_llm_provider, sleep_recorder
    ) -> None:
        limited = {"left": 2}

        def _flaky(model, prompt, **kwargs):
            if "Split the document below" in prompt and limited["left"]:
                limited["left"] -= 1
                raise RateLimitError(message="429")
            return scripted_response(model, prompt, **kwargs)

        mock_llm_provider.generate_content.side_effect = _flaky

        summary = await _ingest(ingestion_service)

        assert summary.chapter_count == 3
        assert sleep_recorder.delays == [2.0, 4.0]


# ======================================================================
# Validation and extraction failures
# ======================================================================


class TestRejectedUploads:
    @pytest.mark.asyncio
    async def test_docx_rejected_before_any_work(
        self, ingestion_service, fake_extractor, mock_llm_provider, memory_store
    ) -> None:
        with pytest.raises(UnsupportedFormatError):
            await _ingest(ingestion_service, name="report.docx")

        assert fake_extractor.calls == 0
        mock_llm_provider.generate_content.assert_not_called()
        assert memory_store.create_calls == 0

    @pytest.mark.asyncio
    async def test_oversized_file_rejected(self, ingestion_service, fake_extractor) -> None:
        with pytest.raises(FileTooLargeError):
            await _ingest(ingestion_service, size=10 * 1024 * 1024 + 1)

        assert fake_extractor.calls == 0

    @pytest.mark.asyncio
    async def test_exactly_ten_megabytes_accepted(self, ingestion_service) -> None:
        summary = await _ingest(ingestion_service, size=10 * 1024 * 1024)
        assert summary.chapter_count == 3

    @pytest.mark.asyncio
    async def test_99_characters_is_insufficient(
        self, memory_store, ai_client, mock_llm_provider
    ) -> None:
        service = _service(FakeTextExtractor(text="x" * 99), memory_store, ai_client)

        with pytest.raises(InsufficientContentError):
            await _ingest(service)

        mock_llm_provider.generate_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_100_characters_is_enough(self, memory_store, ai_client) -> None:
        service = _service(FakeTextExtractor(text="y" * 100), memory_store, ai_client)

        summary = await _ingest(service)

        # No anchors match, so everything lands in the first chapter.
        assert summary.chapter_count == 1
        assert summary.total_words == 1

    @pytest.mark.asyncio
    async def test_extractor_failure_is_wrapped(self, memory_store, ai_client) -> None:
        extractor = FakeTextExtractor(error=RuntimeError("xref table broken"))
        service = _service(extractor, memory_store, ai_client)

        with pytest.raises(ExtractionFailedError) as exc_info:
            await _ingest(service, name="scan.pdf")

        assert "xref table broken" in exc_info.value.message
        assert memory_store.create_calls == 0


# ======================================================================
# AI and persistence failures leave nothing behind
# ======================================================================


class TestFailuresPersistNothing:
    @pytest.mark.asyncio
    async def test_title_failure(self, ingestion_service, mock_llm_provider, memory_store) -> None:
        def _fail_title(model, prompt, **kwargs):
            if "naming an online course" in prompt:
                raise ProviderError(message="model unavailable")
            return scripted_response(model, prompt, **kwargs)

        mock_llm_provider.generate_content.side_effect = _fail_title

        with pytest.raises(ProviderError):
            await _ingest(ingestion_service)

        assert memory_store.create_calls == 0
        assert memory_store.courses == {}

    @pytest.mark.asyncio
    async def test_every_model_rate_limited(
        self, ingestion_service, mock_llm_provider, memory_store
    ) -> None:
        mock_llm_provider.generate_content.side_effect = RateLimitError(message="429")

        with pytest.raises(AllModelsRateLimitedError):
            await _ingest(ingestion_service)

        assert memory_store.courses == {}

    @pytest.mark.asyncio
    async def test_unusable_chunking_output(
        self, ingestion_service, mock_llm_provider, memory_store
    ) -> None:
        def _garbage_chunks(model, prompt, **kwargs):
            if "Split the document below" in prompt:
                return "Sorry, I can't do that."
            return scripted_response(model, prompt, **kwargs)

        mock_llm_provider.generate_content.side_effect = _garbage_chunks

        with pytest.raises(ChunkingFailedError):
            await _ingest(ingestion_service)

        assert memory_store.create_calls == 0

    @pytest.mark.asyncio
    async def test_store_failure(self, fake_extractor, ai_client) -> None:
        store = InMemoryCourseStore(fail_on_create=True)
        service = _service(fake_extractor, store, ai_client)

        with pytest.raises(PersistenceFailedError):
            await _ingest(service)

        assert store.create_calls == 1
        assert store.courses == {}

    @pytest.mark.asyncio
    async def test_unexpected_store_error_is_wrapped(self, fake_extractor, ai_client) -> None:
        class _BrokenStore(InMemoryCourseStore):
            async def create_course(self, course, chapters):
                raise OSError("disk full")

        service = _service(fake_extractor, _BrokenStore(), ai_client)

        with pytest.raises(PersistenceFailedError) as exc_info:
            await _ingest(service)

        assert isinstance(exc_info.value.__cause__, OSError)


# ======================================================================
# End-to-end against SQLite
# ======================================================================


class TestSQLiteIngestion:
    @pytest.mark.asyncio
    async def test_course_readable_after_ingest(self, fake_extractor, ai_client, sqlite_store) -> None:
        service = _service(fake_extractor, sqlite_store, ai_client)

        summary = await _ingest(service)

        record = await sqlite_store.get_course(summary.course_id)
        chapters = await sqlite_store.get_chapters(summary.course_id)
        assert record is not None
        assert record.title == SAMPLE_TITLE
        assert [c.chapter_number for c in chapters] == [1, 2, 3]
        assert sum(c.word_count for c in chapters) == summary.total_words
