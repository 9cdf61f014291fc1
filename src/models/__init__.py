"""Lectern domain models - re-exports all public model classes.

    - course.py     - uploads, extraction results, chapters, courses, progress
    - generation.py - per-prompt sampling settings
    - pipeline.py   - ingestion stage enum
"""

from __future__ import annotations

from src.models.course import (
    Chapter,
    ChapterDraft,
    ChapterSummary,
    CourseMetadata,
    CourseProgress,
    CourseRecord,
    CourseSource,
    ExtractionResult,
    IngestionSummary,
    NewCourse,
    StoredChapter,
    UploadedFile,
    chapter_document_id,
)
from src.models.generation import GenerationConfig
from src.models.pipeline import IngestionStage

__all__ = [
    # course
    "Chapter",
    "ChapterDraft",
    "ChapterSummary",
    "CourseMetadata",
    "CourseProgress",
    "CourseRecord",
    "CourseSource",
    "ExtractionResult",
    "IngestionSummary",
    "NewCourse",
    "StoredChapter",
    "UploadedFile",
    "chapter_document_id",
    # generation
    "GenerationConfig",
    # pipeline
    "IngestionStage",
]
