"""Per-user chapter completion tracking for ingested courses.

Only the course owner may read or update progress.  The percentage
saved on update is a high-water mark: un-completing a chapter shrinks the
completed list but never lowers the saved ``progress``.  Reads report the
percentage of the current completed list.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from src.interfaces.course_store import ICourseStore
from src.models.course import CourseProgress, CourseRecord
from src.utils.errors import CourseAccessDeniedError, CourseNotFoundError

logger = structlog.get_logger(logger_name=__name__)


def _percent(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(completed / total * 100)


class ProgressService:
    """Reads and updates :class:`CourseProgress` records through the course store."""

    def __init__(self, store: ICourseStore) -> None:
        self._store = store

    async def get_owned_course(self, course_id: str, user_id: str) -> CourseRecord:
        """Return the course if it exists and belongs to *user_id*.

        Raises
        ------
        CourseNotFoundError
            No course with that id.
        CourseAccessDeniedError
            The course belongs to someone else.
        """
        course = await self._store.get_course(course_id)
        if course is None:
            raise CourseNotFoundError()
        if course.user_id != user_id:
            logger.warning("course_access_denied", course_id=course_id, user_id=user_id)
            raise CourseAccessDeniedError()
        return course

    async def get_progress(self, course_id: str, user_id: str) -> CourseProgress:
        """Return the user's progress, or an empty record if none is stored.

        ``progress`` is computed from the current completed list; only
        :meth:`update_progress` applies the high-water mark.
        """
        course = await self.get_owned_course(course_id, user_id)
        total = course.metadata.chapter_count
        stored = await self._store.get_progress(course_id, user_id)
        completed = list(stored.completed_chapters) if stored else []

        return CourseProgress(
            course_id=course_id,
            user_id=user_id,
            completed_chapters=completed,
            progress=_percent(len(completed), total),
            total_chapters=total,
            last_accessed_at=stored.last_accessed_at if stored else None,
        )

    async def update_progress(
        self,
        course_id: str,
        user_id: str,
        chapter_number: int,
        completed: bool = True,
    ) -> CourseProgress:
        """Mark *chapter_number* completed (or not) and persist the result.

        Raises
        ------
        ValueError
            *chapter_number* is outside ``1..chapterCount``.
        """
        course = await self.get_owned_course(course_id, user_id)
        total = course.metadata.chapter_count
        if not 1 <= chapter_number <= total:
            raise ValueError(f"chapterNumber must be between 1 and {total}")

        stored = await self._store.get_progress(course_id, user_id)
        chapters = set(stored.completed_chapters) if stored else set()
        if completed:
            chapters.add(chapter_number)
        else:
            chapters.discard(chapter_number)

        previous = stored.progress if stored else 0
        updated = CourseProgress(
            course_id=course_id,
            user_id=user_id,
            completed_chapters=sorted(chapters),
            progress=max(previous, _percent(len(chapters), total)),
            total_chapters=total,
            last_accessed_at=datetime.now(timezone.utc),
        )
        await self._store.save_progress(updated)
        logger.info(
            "chapter_progress_updated",
            course_id=course_id,
            chapter_number=chapter_number,
            completed=completed,
            progress=updated.progress,
        )
        return updated
