"""Course ingestion data models.

Defines Pydantic v2 models for everything that flows through the ingestion
pipeline: the uploaded file, the extraction result, chapters (both the
lenient as-returned-by-the-model draft and the validated chapter), the
persisted course record, and the compact summary returned to callers.

Python attributes are snake_case; serialized names are camelCase so that
``model_dump(by_alias=True)`` yields the persisted document layout
(``chapterNumber``, ``wordCount``, ``estimatedReadingTime`` ...).  All models
except :class:`ChapterDraft` are frozen.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

# Shared config for every persisted / serialized model.
_CAMEL_FROZEN = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def chapter_document_id(chapter_number: int) -> str:
    """Return the child-document key for a chapter, e.g. ``chapter-3``."""
    return f"chapter-{chapter_number}"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------
class UploadedFile(BaseModel):
    """An uploaded document; lives only for the duration of one ingestion call."""

    model_config = ConfigDict(frozen=True)

    name: str
    size_bytes: int = Field(ge=0)
    data: bytes = Field(repr=False)


class ExtractionResult(BaseModel):
    """Plain text pulled out of a document plus reader-specific metadata."""

    model_config = _CAMEL_FROZEN

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Chapters
# ---------------------------------------------------------------------------
class ChapterDraft(BaseModel):
    """One chapter as the model returned it, before repair.

    Every field is optional because model output is not bit-reliable.
    ``starts_with`` holds the verbatim opening words the model quoted for
    the chapter; the chunker uses them to slice the original text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    chapter_number: int | None = None
    title: str | None = None
    summary: str | None = None
    content: str | None = None
    starts_with: str | None = None


class Chapter(BaseModel):
    """A validated chapter of an ingested course."""

    model_config = _CAMEL_FROZEN

    chapter_number: int = Field(ge=1)
    title: str
    content: str
    summary: str = ""
    word_count: int = Field(ge=0)

    @property
    def chapter_id(self) -> str:
        return chapter_document_id(self.chapter_number)

    def to_summary(self) -> ChapterSummary:
        return ChapterSummary(
            id=self.chapter_id,
            chapter_number=self.chapter_number,
            title=self.title,
            summary=self.summary,
            word_count=self.word_count,
        )


class ChapterSummary(BaseModel):
    """Compact chapter view without ``content``."""

    model_config = _CAMEL_FROZEN

    id: str
    chapter_number: int
    title: str
    summary: str = ""
    word_count: int = 0


class StoredChapter(Chapter):
    """A chapter as read back from the course store."""

    order: int
    created_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return self.chapter_id


# ---------------------------------------------------------------------------
# Course
# ---------------------------------------------------------------------------
class CourseSource(BaseModel):
    """Where an ingested course came from."""

    model_config = _CAMEL_FROZEN

    file_name: str
    file_type: str
    file_size: int = Field(ge=0)
    uploaded_at: datetime | None = None


class CourseMetadata(BaseModel):
    """Aggregate metrics computed from the chapter list."""

    model_config = _CAMEL_FROZEN

    chapter_count: int = Field(ge=0)
    total_words: int = Field(ge=0)
    estimated_reading_time: int = Field(ge=0, description="Minutes at a fixed words-per-minute rate.")
    extraction_metadata: dict[str, Any] = Field(default_factory=dict)


class NewCourse(BaseModel):
    """Everything the store needs to create a course; id and timestamps are store-assigned."""

    model_config = _CAMEL_FROZEN

    user_id: str
    title: str
    description: str
    source: CourseSource
    metadata: CourseMetadata
    status: str = "processed"
    type: str = "ingested"


class CourseRecord(NewCourse):
    """A persisted course document."""

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Ingestion output
# ---------------------------------------------------------------------------
class IngestionSummary(BaseModel):
    """Result of one ingestion call.

    Chapter ``content`` stays in storage only, which keeps the response
    size bounded regardless of document length.
    """

    model_config = _CAMEL_FROZEN

    course_id: str
    title: str
    description: str
    chapter_count: int
    total_words: int
    estimated_reading_time: int
    chapters: list[ChapterSummary] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------
class CourseProgress(BaseModel):
    """One user's chapter completion state for one course."""

    model_config = _CAMEL_FROZEN

    course_id: str
    user_id: str
    completed_chapters: list[int] = Field(default_factory=list)
    progress: int = Field(default=0, ge=0, le=100)
    total_chapters: int = Field(default=0, ge=0)
    last_accessed_at: datetime | None = None
