"""Abstract base class for course persistence.

A course is a parent document with a child collection of chapters keyed
``chapter-{chapterNumber}``.  Creation is the single atomicity boundary of
the ingestion pipeline: the course and all its chapters land together or
not at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.course import Chapter, CourseProgress, CourseRecord, NewCourse, StoredChapter


# Concrete implementation: SQLiteCourseStore (src/providers/store/)
class ICourseStore(ABC):
    """Contract for the course document store."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create backing tables/collections if needed."""

    @abstractmethod
    async def create_course(self, course: NewCourse, chapters: list[Chapter]) -> str:
        """Atomically write *course* and all *chapters*; return the new course id.

        The id and the ``createdAt`` / ``updatedAt`` / ``uploadedAt``
        timestamps are assigned by the store.

        Raises
        ------
        src.utils.errors.PersistenceFailedError
            If the write failed.  Nothing from this call is visible afterwards.
        """

    @abstractmethod
    async def get_course(self, course_id: str) -> CourseRecord | None:
        """Return the course document, or ``None`` if it does not exist."""

    @abstractmethod
    async def list_courses(self, user_id: str) -> list[CourseRecord]:
        """Return every course owned by *user_id*, newest first."""

    @abstractmethod
    async def get_chapters(self, course_id: str) -> list[StoredChapter]:
        """Return the chapters of a course ordered by ``order``."""

    @abstractmethod
    async def get_chapter(self, course_id: str, chapter_id: str) -> StoredChapter | None:
        """Return one chapter by its key, or ``None``."""

    @abstractmethod
    async def get_progress(self, course_id: str, user_id: str) -> CourseProgress | None:
        """Return stored progress for a user on a course, or ``None``."""

    @abstractmethod
    async def save_progress(self, progress: CourseProgress) -> None:
        """Insert or replace a user's progress record."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
