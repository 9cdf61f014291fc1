"""SQLite-backed course store.

Persists ingested courses, their chapters and per-user progress to a local
SQLite database at ``data/courses.db``.  Uses ``aiosqlite`` for async I/O.

Layout mirrors a document store: a ``courses`` row is the parent document
(``source`` and ``metadata`` kept as camelCase JSON) and ``chapters`` rows
are its child collection keyed ``chapter-{chapterNumber}``.  A course and
all of its chapters are written in one transaction.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.course_store import ICourseStore
from src.models.course import (
    Chapter,
    CourseMetadata,
    CourseProgress,
    CourseRecord,
    CourseSource,
    NewCourse,
    StoredChapter,
)
from src.utils.errors import PersistenceFailedError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/courses.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS courses (
    id           TEXT PRIMARY KEY,
    user_id      TEXT NOT NULL,
    title        TEXT NOT NULL,
    description  TEXT NOT NULL,
    source       TEXT NOT NULL,
    metadata     TEXT NOT NULL,
    status       TEXT NOT NULL,
    type         TEXT NOT NULL,
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chapters (
    course_id       TEXT    NOT NULL REFERENCES courses(id) ON DELETE CASCADE,
    chapter_id      TEXT    NOT NULL,
    chapter_number  INTEGER NOT NULL,
    title           TEXT    NOT NULL,
    content         TEXT    NOT NULL,
    summary         TEXT    NOT NULL DEFAULT '',
    word_count      INTEGER NOT NULL,
    ord             INTEGER NOT NULL,
    created_at      TEXT    NOT NULL,
    PRIMARY KEY (course_id, chapter_id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS progress (
    course_id           TEXT    NOT NULL,
    user_id             TEXT    NOT NULL,
    completed_chapters  TEXT    NOT NULL DEFAULT '[]',
    progress            INTEGER NOT NULL DEFAULT 0,
    total_chapters      INTEGER NOT NULL DEFAULT 0,
    last_accessed_at    TEXT,
    PRIMARY KEY (course_id, user_id)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_courses_user ON courses(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_chapters_course_ord ON chapters(course_id, ord);",
]

_INSERT_COURSE_SQL = """\
INSERT INTO courses (id, user_id, title, description, source, metadata, status, type,
                     created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_CHAPTER_SQL = """\
INSERT INTO chapters (course_id, chapter_id, chapter_number, title, content, summary,
                      word_count, ord, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPSERT_PROGRESS_SQL = """\
INSERT INTO progress (course_id, user_id, completed_chapters, progress, total_chapters,
                      last_accessed_at)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(course_id, user_id)
DO UPDATE SET completed_chapters = excluded.completed_chapters,
              progress           = excluded.progress,
              total_chapters     = excluded.total_chapters,
              last_accessed_at   = excluded.last_accessed_at;
"""

_COURSE_COLUMNS = (
    "id, user_id, title, description, source, metadata, status, type, created_at, updated_at"
)
_CHAPTER_COLUMNS = (
    "chapter_number, title, content, summary, word_count, ord, created_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_course(row: aiosqlite.Row) -> CourseRecord:
    r = dict(row)
    return CourseRecord(
        id=r["id"],
        user_id=r["user_id"],
        title=r["title"],
        description=r["description"],
        source=CourseSource.model_validate_json(r["source"]),
        metadata=CourseMetadata.model_validate_json(r["metadata"]),
        status=r["status"],
        type=r["type"],
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


def _row_to_chapter(row: aiosqlite.Row) -> StoredChapter:
    r = dict(row)
    return StoredChapter(
        chapter_number=r["chapter_number"],
        title=r["title"],
        content=r["content"],
        summary=r["summary"],
        word_count=r["word_count"],
        order=r["ord"],
        created_at=r["created_at"],
    )


class SQLiteCourseStore(ICourseStore):
    """SQLite-backed course persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the course, chapter and progress tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("course_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    async def create_course(self, course: NewCourse, chapters: list[Chapter]) -> str:
        course_id = uuid.uuid4().hex
        now = _now()
        source: dict[str, Any] = course.source.model_dump(mode="json", by_alias=True)
        source["uploadedAt"] = now

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                try:
                    await db.execute(
                        _INSERT_COURSE_SQL,
                        (
                            course_id,
                            course.user_id,
                            course.title,
                            course.description,
                            json.dumps(source),
                            course.metadata.model_dump_json(by_alias=True),
                            course.status,
                            course.type,
                            now,
                            now,
                        ),
                    )
                    await db.executemany(
                        _INSERT_CHAPTER_SQL,
                        [
                            (
                                course_id,
                                chapter.chapter_id,
                                chapter.chapter_number,
                                chapter.title,
                                chapter.content,
                                chapter.summary,
                                chapter.word_count,
                                chapter.chapter_number,
                                now,
                            )
                            for chapter in chapters
                        ],
                    )
                    await db.commit()
                except aiosqlite.Error:
                    await db.rollback()
                    raise
        except (aiosqlite.Error, OSError) as exc:
            logger.error(
                "course_persist_failed",
                user_id=course.user_id,
                chapters=len(chapters),
                error=str(exc),
            )
            raise PersistenceFailedError(provider_name=self.get_provider_name()) from exc

        logger.info(
            "course_persisted",
            course_id=course_id,
            user_id=course.user_id,
            chapters=len(chapters),
        )
        return course_id

    async def get_course(self, course_id: str) -> CourseRecord | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_COURSE_COLUMNS} FROM courses WHERE id = ?", (course_id,)
            )
            row = await cursor.fetchone()
        return _row_to_course(row) if row else None

    async def list_courses(self, user_id: str) -> list[CourseRecord]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_COURSE_COLUMNS} FROM courses WHERE user_id = ? "
                "ORDER BY created_at DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_course(r) for r in rows]

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    async def get_chapters(self, course_id: str) -> list[StoredChapter]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_CHAPTER_COLUMNS} FROM chapters WHERE course_id = ? ORDER BY ord",
                (course_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_chapter(r) for r in rows]

    async def get_chapter(self, course_id: str, chapter_id: str) -> StoredChapter | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_CHAPTER_COLUMNS} FROM chapters "
                "WHERE course_id = ? AND chapter_id = ?",
                (course_id, chapter_id),
            )
            row = await cursor.fetchone()
        return _row_to_chapter(row) if row else None

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def get_progress(self, course_id: str, user_id: str) -> CourseProgress | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT course_id, user_id, completed_chapters, progress, total_chapters, "
                "last_accessed_at FROM progress WHERE course_id = ? AND user_id = ?",
                (course_id, user_id),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        r = dict(row)
        return CourseProgress(
            course_id=r["course_id"],
            user_id=r["user_id"],
            completed_chapters=json.loads(r["completed_chapters"]),
            progress=r["progress"],
            total_chapters=r["total_chapters"],
            last_accessed_at=r["last_accessed_at"],
        )

    async def save_progress(self, progress: CourseProgress) -> None:
        last_accessed = progress.last_accessed_at.isoformat() if progress.last_accessed_at else _now()
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPSERT_PROGRESS_SQL,
                (
                    progress.course_id,
                    progress.user_id,
                    json.dumps(progress.completed_chapters),
                    progress.progress,
                    progress.total_chapters,
                    last_accessed,
                ),
            )
            await db.commit()
        logger.info(
            "progress_saved",
            course_id=progress.course_id,
            user_id=progress.user_id,
            progress=progress.progress,
        )

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite_courses"
