"""Parsing and repair of model-produced chapter lists.

Model output is not bit-reliable, so turning a chunking response into
chapters happens in two phases:

1. **Parse** -- a strict ``json.loads`` of the raw text, then coercion of
   the payload into :class:`ChapterDraft` objects.  If that fails, the
   named text repairs in :data:`TEXT_REPAIRS` are applied one after another
   (cumulatively) with a re-parse after each.
2. **Post-process** -- named steps that turn drafts into valid chapters:
   :func:`resolve_content`, :func:`drop_empty_chapters`,
   :func:`fill_missing_titles` and :func:`renumber_chapters`.

Every function here is pure and can be tested on its own.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

import structlog

from src.models.course import Chapter, ChapterDraft
from src.utils.errors import ChunkingFailedError

logger = structlog.get_logger(logger_name=__name__)

_MAX_SYNTH_TITLE_CHARS = 80
_ANCHOR_WORDS = 12
_MAX_JSON_STARTS = 64

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


# ---------------------------------------------------------------------------
# Phase 1: text repairs
# ---------------------------------------------------------------------------
def strip_code_fences(raw: str) -> str:
    """Return the body of the first markdown code fence, or *raw* unchanged."""
    match = _FENCE_RE.search(raw)
    if match:
        return match.group(1).strip()
    # An unterminated fence (truncated output) still has an opening marker.
    stripped = raw.strip()
    if stripped.startswith("```"):
        return stripped.split("\n", 1)[1] if "\n" in stripped else ""
    return raw


def _is_chapter_payload(value: Any) -> bool:
    if isinstance(value, dict):
        return isinstance(value.get("chapters"), list)
    return isinstance(value, list) and any(isinstance(item, dict) for item in value)


def _json_starts(raw: str) -> list[int]:
    starts = [i for i, ch in enumerate(raw) if ch in "{["]
    return starts[:_MAX_JSON_STARTS]


def extract_json_block(raw: str) -> str:
    """Cut surrounding prose away from the JSON chapter payload.

    Each ``{`` or ``[`` is tried as a start in turn, so brackets in the
    prose before the payload are skipped.  The first start that decodes to
    a chapter payload wins.  When nothing decodes as-is (trailing commas,
    say) the outermost block that would decode once those are removed is
    returned, and failing that the block from the first opener.
    """
    starts = _json_starts(raw)
    if not starts:
        return raw

    decoder = json.JSONDecoder()
    for start in starts:
        try:
            value, end = decoder.raw_decode(raw, start)
        except RecursionError:
            # Deeper starts sit inside the same nesting.
            break
        except ValueError:
            continue
        if _is_chapter_payload(value):
            return raw[start:end]

    blocks: list[str] = []
    for start in starts:
        end = raw.rfind("}" if raw[start] == "{" else "]")
        if end > start:
            blocks.append(raw[start : end + 1])
    for block in blocks:
        try:
            if _is_chapter_payload(json.loads(remove_trailing_commas(block))):
                return block
        except (ValueError, RecursionError):
            continue
    return blocks[0] if blocks else raw


def remove_trailing_commas(raw: str) -> str:
    """Drop commas that directly precede a closing brace or bracket."""
    return _TRAILING_COMMA_RE.sub(r"\1", raw)


TEXT_REPAIRS: tuple[Callable[[str], str], ...] = (
    strip_code_fences,
    extract_json_block,
    remove_trailing_commas,
)


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def coerce_chapter_list(data: Any) -> list[ChapterDraft]:
    """Coerce a decoded payload into drafts.

    Accepts ``{"chapters": [...]}`` or a bare list.  Non-object items are
    skipped; fields of the wrong type are treated as missing.

    Raises
    ------
    ValueError
        If *data* does not have either accepted shape.
    """
    if isinstance(data, dict):
        items = data.get("chapters")
    else:
        items = data
    if not isinstance(items, list):
        raise ValueError("payload has no chapter list")

    drafts: list[ChapterDraft] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        drafts.append(
            ChapterDraft(
                chapter_number=_as_int(item.get("chapterNumber", item.get("chapter_number"))),
                title=_as_str(item.get("title")),
                summary=_as_str(item.get("summary")),
                content=_as_str(item.get("content")),
                starts_with=_as_str(item.get("startsWith", item.get("starts_with"))),
            )
        )
    return drafts


def _try_parse(raw: str) -> list[ChapterDraft] | None:
    try:
        return coerce_chapter_list(json.loads(raw))
    except (ValueError, RecursionError):
        # json.JSONDecodeError is a ValueError subclass; deeply nested
        # output exhausts the decoder's recursion limit instead.
        return None


def parse_chapter_payload(raw: str) -> list[ChapterDraft]:
    """Parse a chunking response, applying :data:`TEXT_REPAIRS` on failure.

    Raises
    ------
    ChunkingFailedError
        If no repair yields a parseable chapter list.
    """
    drafts = _try_parse(raw)
    if drafts is not None:
        return drafts

    repaired = raw
    for repair in TEXT_REPAIRS:
        repaired = repair(repaired)
        drafts = _try_parse(repaired)
        if drafts is not None:
            logger.info("chapter_payload_repaired", repair=repair.__name__)
            return drafts

    logger.warning("chapter_payload_unparseable", response_preview=raw[:200])
    raise ChunkingFailedError(
        message="The AI response could not be parsed into chapters."
    )


# ---------------------------------------------------------------------------
# Phase 2: post-processing
# ---------------------------------------------------------------------------
def _locate_anchor(text: str, anchor: str, start: int) -> int:
    """Find *anchor* in *text* at or after *start*; ``-1`` if absent.

    Tries an exact match first, then a case- and whitespace-insensitive
    match on the anchor's leading words.
    """
    anchor = anchor.strip()
    if not anchor:
        return -1
    pos = text.find(anchor, start)
    if pos != -1:
        return pos
    words = anchor.split()[:_ANCHOR_WORDS]
    pattern = re.compile(r"\s+".join(re.escape(w) for w in words), re.IGNORECASE)
    match = pattern.search(text, start)
    return match.start() if match else -1


def resolve_content(drafts: list[ChapterDraft], source_text: str) -> list[ChapterDraft]:
    """Give every draft its content.

    If every draft already carries inline ``content`` the drafts are
    returned unchanged, and so are drafts that carry some inline content
    but no anchors to slice by; the ones left empty are dropped later by
    :func:`drop_empty_chapters`.  Otherwise chapters are sliced out of
    *source_text* at their ``starts_with`` anchors: the first chapter
    starts at offset 0 and the last runs to the end of the text, so the
    slices never overlap and together cover everything.  A draft whose
    anchor cannot be found (after the previous chapter's start) is folded
    into the chapter before it.
    """
    has_content = [bool(d.content and d.content.strip()) for d in drafts]
    if drafts and all(has_content):
        return drafts
    has_anchors = any(d.starts_with and d.starts_with.strip() for d in drafts[1:])
    if any(has_content) and not has_anchors:
        logger.debug("chapter_inline_content_incomplete", empty=has_content.count(False))
        return drafts

    kept: list[ChapterDraft] = []
    starts: list[int] = []
    cursor = 0
    for index, draft in enumerate(drafts):
        if index == 0:
            pos = 0
        else:
            pos = _locate_anchor(source_text, draft.starts_with or "", cursor)
            if pos == -1:
                logger.debug("chapter_anchor_not_found", title=draft.title)
                continue
        kept.append(draft)
        starts.append(pos)
        cursor = pos + 1

    resolved: list[ChapterDraft] = []
    for i, draft in enumerate(kept):
        end = starts[i + 1] if i + 1 < len(starts) else len(source_text)
        resolved.append(draft.model_copy(update={"content": source_text[starts[i] : end].strip()}))
    return resolved


def drop_empty_chapters(drafts: list[ChapterDraft]) -> list[ChapterDraft]:
    """Remove drafts whose content is missing or blank."""
    return [d for d in drafts if d.content and d.content.strip()]


def fill_missing_titles(drafts: list[ChapterDraft]) -> list[ChapterDraft]:
    """Derive blank titles from the first line of content; blank summaries become ``""``."""
    filled: list[ChapterDraft] = []
    for draft in drafts:
        update: dict[str, str] = {}
        if not (draft.title and draft.title.strip()):
            first_line = next(
                (line.strip() for line in (draft.content or "").splitlines() if line.strip()),
                "",
            )
            title = first_line[:_MAX_SYNTH_TITLE_CHARS].strip()
            if len(first_line) > _MAX_SYNTH_TITLE_CHARS:
                title = title.rsplit(" ", 1)[0]
            update["title"] = title or "Untitled Chapter"
        else:
            update["title"] = draft.title.strip()
        update["summary"] = (draft.summary or "").strip()
        filled.append(draft.model_copy(update=update))
    return filled


def renumber_chapters(drafts: list[ChapterDraft]) -> list[Chapter]:
    """Number drafts 1..N in list order and compute word counts from content.

    Any chapter number or word count the model supplied is discarded.
    """
    return [
        Chapter(
            chapter_number=number,
            title=draft.title or "",
            content=draft.content or "",
            summary=draft.summary or "",
            word_count=len((draft.content or "").split()),
        )
        for number, draft in enumerate(drafts, start=1)
    ]


def measure_coverage(chapters: list[Chapter], source_text: str) -> float:
    """Fraction of the source's non-whitespace characters found in chapter content.

    Only an approximation for inline content: overlapping chapters count twice.
    """
    source_chars = len("".join(source_text.split()))
    if source_chars == 0:
        return 1.0
    chapter_chars = sum(len("".join(c.content.split())) for c in chapters)
    return min(1.0, chapter_chars / source_chars)
