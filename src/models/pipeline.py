"""Ingestion stage model.

A single ingestion call walks these stages in order.  Any failure jumps
straight to ``FAILED``; there are no retries at this level (retries live
inside the AI structuring client).

    VALIDATING → EXTRACTING → GENERATING → CHUNKING → AGGREGATING →
    PERSISTING → DONE
"""

from __future__ import annotations

from enum import Enum


class IngestionStage(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Stages of one course ingestion call."""

    VALIDATING = "VALIDATING"    # Type + size checks, no I/O
    EXTRACTING = "EXTRACTING"    # Document bytes → plain text
    GENERATING = "GENERATING"    # Title + description prompts in flight
    CHUNKING = "CHUNKING"        # Chapter split prompt + repair
    AGGREGATING = "AGGREGATING"  # Word totals and reading time
    PERSISTING = "PERSISTING"    # Atomic course + chapters write
    DONE = "DONE"
    FAILED = "FAILED"
