# =============================================================================
# src/cli/ingest.py - CLI Ingest Command
# =============================================================================
#
# Runs the course ingestion pipeline on a local file, without the web
# server.  Useful for bulk-loading documents and for trying prompts and
# models against real documents during development.
#
# The pipeline is exactly the one behind POST /api/v1/courses/ingest:
#   1. Validate the file type and size
#   2. Extract text (PyMuPDF for PDF, ebooklib for EPUB, plain decode for TXT)
#   3. Generate course title and description (concurrently)
#   4. Split the text into chapters with the AI chunker
#   5. Persist course + chapters to SQLite in one transaction
#
# Provider Selection (same as main.py):
#   - LLM: Gemini -> Anthropic -> OpenAI-compatible
#   - Course store: SQLite at COURSE_DB_PATH (or --db)
#
# Usage examples:
#   python -m src.cli.ingest notes/intro-to-python.pdf
#   python -m src.cli.ingest book.epub --user-id alice@example.com
#   python -m src.cli.ingest article.txt --db /tmp/courses.db
# =============================================================================

"""Standalone CLI for ingesting a local document into a course.

Usage::

    python -m src.cli.ingest FILE [--user-id ID] [--db PATH]

Prints the ingestion summary as JSON on success; prints the error message
to stderr and exits with status 1 on failure.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import httpx

from src.config.settings import Settings
from src.utils.errors import LecternError


async def _run_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    """Build the services, run one ingestion, and print the summary."""
    # Deferred import: src.main wires every provider, which is only needed
    # once arguments have been validated.
    from src.config.loader import load_config
    from src.main import build_services

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.ai_request_timeout_seconds, connect=5.0)
    ) as http_client:
        services = build_services(
            app_settings, load_config(settings=app_settings), http_client=http_client
        )
        await services["course_store"].initialize()

        data = path.read_bytes()
        try:
            summary = await services["ingestion_service"].ingest(
                data, path.name, len(data), args.user_id
            )
        except LecternError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1

    print(json.dumps(summary.model_dump(mode="json", by_alias=True), indent=2))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Turn a PDF, TXT or EPUB document into a Lectern course.",
    )
    parser.add_argument("file", help="Path to the document to ingest")
    parser.add_argument(
        "--user-id",
        dest="user_id",
        default="anonymous",
        help="Owner of the new course (default: anonymous)",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: COURSE_DB_PATH or data/courses.db)",
    )
    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool.

    Settings come from environment variables / the .env file; ``--db``
    overrides the course database path.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    overrides = {"course_db_path": args.db} if args.db else {}
    app_settings = Settings(**overrides)

    exit_code = asyncio.run(_run_ingest(args, app_settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
