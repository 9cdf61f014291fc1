"""Shared pytest fixtures for the Lectern test suite."""

from __future__ import annotations

import json
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.course_store import ICourseStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.text_extractor import ITextExtractor
from src.models.course import (
    Chapter,
    CourseProgress,
    CourseRecord,
    ExtractionResult,
    NewCourse,
    StoredChapter,
)
from src.providers.store.sqlite_course_store import SQLiteCourseStore
from src.services.generation.course_copy_generator import CourseCopyGenerator
from src.services.generation.model_fallback_client import ModelFallbackClient
from src.services.ingestion.content_chunker import ContentChunker
from src.services.ingestion.file_validator import FileValidator
from src.services.ingestion.ingestion_service import CourseIngestionService
from src.utils.errors import PersistenceFailedError

# ---------------------------------------------------------------------------
# Sample document
# ---------------------------------------------------------------------------

SAMPLE_TEXT = (
    "Getting started with sourdough. A sourdough starter is a living culture of "
    "wild yeast and bacteria. Feed it flour and water every day for a week.\n\n"
    "Mixing the dough. Combine the active starter with flour, water and salt, "
    "then rest the dough so the gluten can develop on its own.\n\n"
    "Shaping and baking. Shape the loaf with gentle tension, proof it overnight "
    "in the fridge, and bake it in a very hot covered pot."
)

SAMPLE_TITLE = "Sourdough From Scratch"
SAMPLE_DESCRIPTION = (
    "Learn to keep a sourdough starter alive and turn it into bread. "
    "The course walks through mixing, shaping and baking a first loaf."
)

SAMPLE_CHUNK_RESPONSE = json.dumps(
    {
        "chapters": [
            {
                "chapterNumber": 1,
                "title": "Getting Started",
                "summary": "Building a starter.",
                "startsWith": "Getting started with sourdough.",
            },
            {
                "chapterNumber": 2,
                "title": "Mixing",
                "summary": "Making the dough.",
                "startsWith": "Mixing the dough.",
            },
            {
                "chapterNumber": 3,
                "title": "Shaping and Baking",
                "summary": "From dough to loaf.",
                "startsWith": "Shaping and baking.",
            },
        ]
    }
)


def scripted_response(
    model: str,
    prompt: str,
    temperature: float = 0.7,
    max_output_tokens: int = 1024,
) -> str:
    """Answer each pipeline prompt with the matching canned response."""
    if "naming an online course" in prompt:
        return SAMPLE_TITLE
    if "catalogue description" in prompt:
        return SAMPLE_DESCRIPTION
    return SAMPLE_CHUNK_RESPONSE


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeTextExtractor(ITextExtractor):
    """Extension-based detector that returns preset text (or raises)."""

    _TYPES = {"pdf": "pdf", "txt": "txt", "epub": "epub", "docx": "docx", "md": "md"}

    def __init__(self, text: str = SAMPLE_TEXT, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls = 0

    def detect_file_type(self, file_name: str) -> str | None:
        ext = Path(file_name).suffix.lower().lstrip(".")
        return self._TYPES.get(ext)

    async def extract_text(self, data: bytes, file_type: str) -> ExtractionResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return ExtractionResult(text=self.text, metadata={"fileType": file_type})

    def get_provider_name(self) -> str:
        return "fake-extractor"


class InMemoryCourseStore(ICourseStore):
    """Dict-backed course store with an optional write failure."""

    def __init__(self, fail_on_create: bool = False) -> None:
        self.fail_on_create = fail_on_create
        self.courses: dict[str, CourseRecord] = {}
        self.chapters: dict[str, list[StoredChapter]] = {}
        self.progress: dict[tuple[str, str], CourseProgress] = {}
        self.create_calls = 0

    async def initialize(self) -> None:
        return None

    async def create_course(self, course: NewCourse, chapters: list[Chapter]) -> str:
        self.create_calls += 1
        if self.fail_on_create:
            raise PersistenceFailedError(provider_name="memory")
        course_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)
        self.courses[course_id] = CourseRecord(
            **course.model_dump(), id=course_id, created_at=now, updated_at=now
        )
        self.chapters[course_id] = [
            StoredChapter(**ch.model_dump(), order=ch.chapter_number, created_at=now)
            for ch in chapters
        ]
        return course_id

    async def get_course(self, course_id: str) -> CourseRecord | None:
        return self.courses.get(course_id)

    async def list_courses(self, user_id: str) -> list[CourseRecord]:
        return [c for c in self.courses.values() if c.user_id == user_id]

    async def get_chapters(self, course_id: str) -> list[StoredChapter]:
        return list(self.chapters.get(course_id, []))

    async def get_chapter(self, course_id: str, chapter_id: str) -> StoredChapter | None:
        for chapter in self.chapters.get(course_id, []):
            if chapter.chapter_id == chapter_id:
                return chapter
        return None

    async def get_progress(self, course_id: str, user_id: str) -> CourseProgress | None:
        return self.progress.get((course_id, user_id))

    async def save_progress(self, progress: CourseProgress) -> None:
        self.progress[(progress.course_id, progress.user_id)] = progress

    def get_provider_name(self) -> str:
        return "memory"


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider whose generate_content answers every pipeline prompt.

    Override with ``mock_llm_provider.generate_content.side_effect = [...]``
    for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.default_models.return_value = ["model-a", "model-b"]
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.generate_content = AsyncMock(side_effect=scripted_response)
    return mock


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_extractor() -> FakeTextExtractor:
    return FakeTextExtractor()


@pytest.fixture
def memory_store() -> InMemoryCourseStore:
    return InMemoryCourseStore()


@pytest.fixture
def ai_client(mock_llm_provider, sleep_recorder) -> ModelFallbackClient:
    return ModelFallbackClient(
        provider=mock_llm_provider,
        models=["model-a", "model-b"],
        sleep=sleep_recorder,
    )


@pytest.fixture
def ingestion_service(fake_extractor, memory_store, ai_client) -> CourseIngestionService:
    """CourseIngestionService wired to in-memory doubles."""
    return CourseIngestionService(
        validator=FileValidator(extractor=fake_extractor),
        extractor=fake_extractor,
        copy_generator=CourseCopyGenerator(client=ai_client),
        chunker=ContentChunker(client=ai_client),
        store=memory_store,
    )


@pytest.fixture
async def sqlite_store():
    """SQLiteCourseStore backed by a temporary database file."""
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    store = SQLiteCourseStore(db_path=tmp.name)
    await store.initialize()
    yield store
    os.unlink(tmp.name)


def course_payload(**overrides: Any) -> dict[str, Any]:
    """Keyword arguments for a minimal NewCourse."""
    payload: dict[str, Any] = {
        "user_id": "alice",
        "title": "Sourdough From Scratch",
        "description": "Bread, step by step.",
        "source": {"file_name": "sourdough.txt", "file_type": "txt", "file_size": 1234},
        "metadata": {"chapter_count": 2, "total_words": 6, "estimated_reading_time": 1},
    }
    payload.update(overrides)
    return payload
