"""Course persistence adapters."""

from src.providers.store.sqlite_course_store import SQLiteCourseStore

__all__ = ["SQLiteCourseStore"]
