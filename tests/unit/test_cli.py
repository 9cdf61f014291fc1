"""Unit tests for the ingestion CLI (src.cli.ingest)."""

from __future__ import annotations

import json
from argparse import Namespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.config.settings import Settings
from src.models.course import ChapterSummary, IngestionSummary
from src.utils.errors import InsufficientContentError


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(tmp_path) -> Settings:
    return Settings(gemini_api_key="g", course_db_path=str(tmp_path / "courses.db"))


def _summary() -> IngestionSummary:
    return IngestionSummary(
        course_id="abc123",
        title="Sourdough From Scratch",
        description="Bread.",
        chapter_count=1,
        total_words=250,
        estimated_reading_time=2,
        chapters=[
            ChapterSummary(id="chapter-1", chapter_number=1, title="Start", word_count=250)
        ],
    )


def _services(ingest: AsyncMock) -> dict:
    store = MagicMock()
    store.initialize = AsyncMock()
    service = MagicMock()
    service.ingest = ingest
    return {"course_store": store, "ingestion_service": service}


# ======================================================================
# _run_ingest
# ======================================================================


class TestRunIngest:
    @pytest.mark.asyncio
    async def test_success_prints_summary_json(self, tmp_path, capsys) -> None:
        from src.cli.ingest import _run_ingest

        doc = tmp_path / "sourdough.txt"
        doc.write_bytes(b"some document text")
        ingest = AsyncMock(return_value=_summary())

        with patch("src.main.build_services", return_value=_services(ingest)):
            code = await _run_ingest(
                Namespace(file=str(doc), user_id="alice", db=None), _settings(tmp_path)
            )

        assert code == 0
        ingest.assert_awaited_once_with(b"some document text", "sourdough.txt", 18, "alice")
        printed = json.loads(capsys.readouterr().out)
        assert printed["courseId"] == "abc123"
        assert printed["chapters"][0]["chapterNumber"] == 1

    @pytest.mark.asyncio
    async def test_domain_error_prints_message(self, tmp_path, capsys) -> None:
        from src.cli.ingest import _run_ingest

        doc = tmp_path / "short.txt"
        doc.write_bytes(b"tiny")
        ingest = AsyncMock(side_effect=InsufficientContentError())

        with patch("src.main.build_services", return_value=_services(ingest)):
            code = await _run_ingest(
                Namespace(file=str(doc), user_id="anonymous", db=None), _settings(tmp_path)
            )

        assert code == 1
        assert "does not contain enough readable text" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_shared_http_client_is_closed_after_run(self, tmp_path) -> None:
        from src.cli.ingest import _run_ingest

        doc = tmp_path / "sourdough.txt"
        doc.write_bytes(b"some document text")
        build = MagicMock(return_value=_services(AsyncMock(return_value=_summary())))

        with patch("src.main.build_services", build):
            await _run_ingest(
                Namespace(file=str(doc), user_id="alice", db=None), _settings(tmp_path)
            )

        http_client = build.call_args.kwargs["http_client"]
        assert isinstance(http_client, httpx.AsyncClient)
        assert http_client.is_closed

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path, capsys) -> None:
        from src.cli.ingest import _run_ingest

        code = await _run_ingest(
            Namespace(file=str(tmp_path / "absent.pdf"), user_id="anonymous", db=None),
            _settings(tmp_path),
        )

        assert code == 1
        assert "file not found" in capsys.readouterr().err


# ======================================================================
# main / argument parsing
# ======================================================================


class TestMain:
    def test_defaults_and_db_override(self, tmp_path) -> None:
        from src.cli import ingest

        captured: dict = {}

        async def _fake_run(args, app_settings):
            captured["args"] = args
            captured["settings"] = app_settings
            return 0

        db = str(tmp_path / "other.db")
        with patch.object(ingest, "_run_ingest", _fake_run):
            with pytest.raises(SystemExit) as exc_info:
                ingest.main(["book.epub", "--db", db])

        assert exc_info.value.code == 0
        assert captured["args"].user_id == "anonymous"
        assert captured["settings"].course_db_path == db

    def test_file_argument_required(self) -> None:
        from src.cli.ingest import main

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
