"""Generates a course title and description from extracted document text.

Both prompts see only the opening of the document; the model's answer is
cleaned of the decoration models like to add (code fences, quotes,
``Title:`` labels, markdown emphasis) before it is used.
"""

from __future__ import annotations

import os
import re

import structlog

from src.models.generation import GenerationConfig
from src.services.generation.model_fallback_client import ModelFallbackClient
from src.utils.errors import EmptyResponseError

logger = structlog.get_logger(logger_name=__name__)

_TITLE_EXCERPT_CHARS = 3_000
_DESCRIPTION_EXCERPT_CHARS = 5_000
_MAX_TITLE_CHARS = 120
_MAX_DESCRIPTION_CHARS = 500

_TITLE_CONFIG = GenerationConfig(temperature=0.7, max_output_tokens=100)
_DESCRIPTION_CONFIG = GenerationConfig(temperature=0.7, max_output_tokens=300)

_TITLE_PROMPT = """\
You are naming an online course built from an uploaded document.
The original file name is "{file_name}" (use it only as a hint).

Write ONE concise, engaging course title (at most 10 words) that reflects
what the document teaches.  Return only the title: no quotes, no labels,
no explanation.

Document opening:
---
{excerpt}
---"""

_DESCRIPTION_PROMPT = """\
You are writing the catalogue description of an online course built from
the document below.

Write a 2-3 sentence description of what a learner will get out of the
course.  Return only the description as plain prose: no headings, no
bullet points, no labels.

Document opening:
---
{excerpt}
---"""

_FENCE_RE = re.compile(r"```[a-zA-Z]*")
_LABEL_RE = re.compile(r"^\s*(?:course\s+)?(?:title|description)\s*:\s*", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?](?=\s|$)")
_STRIP_CHARS = " \t\"'`*#_“”‘’"


def humanize_file_name(file_name: str) -> str:
    """Turn ``intro_to-python.v2.pdf`` into ``Intro To Python V2``."""
    stem, _ = os.path.splitext(os.path.basename(file_name))
    words = re.split(r"[\s_.\-]+", stem)
    title = " ".join(w.capitalize() for w in words if w)
    return title or "Untitled Course"


def clean_title(raw: str) -> str:
    """Reduce a model answer to a single bare title line (may be empty)."""
    text = _FENCE_RE.sub("", raw)
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    title = _LABEL_RE.sub("", first_line).strip(_STRIP_CHARS)
    if len(title) > _MAX_TITLE_CHARS:
        title = title[:_MAX_TITLE_CHARS].rsplit(" ", 1)[0].rstrip(" ,;:-")
    return title


def clean_description(raw: str) -> str:
    """Collapse a model answer into one paragraph capped at 500 characters.

    When the cap falls mid-sentence the text is cut back to the last
    complete sentence, if there is one.
    """
    text = _FENCE_RE.sub("", raw)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    text = _LABEL_RE.sub("", text).strip(_STRIP_CHARS)
    if len(text) <= _MAX_DESCRIPTION_CHARS:
        return text

    clipped = text[:_MAX_DESCRIPTION_CHARS]
    ends = [m.end() for m in _SENTENCE_END_RE.finditer(clipped)]
    if ends:
        return clipped[: ends[-1]]
    return clipped.rsplit(" ", 1)[0]


class CourseCopyGenerator:
    """Produces the title and description shown for an ingested course."""

    def __init__(self, client: ModelFallbackClient) -> None:
        self._client = client

    async def generate_title(self, file_name: str, text: str) -> str:
        prompt = _TITLE_PROMPT.format(file_name=file_name, excerpt=text[:_TITLE_EXCERPT_CHARS])
        raw = await self._client.generate(prompt, _TITLE_CONFIG)
        title = clean_title(raw)
        if not title:
            title = humanize_file_name(file_name)
            logger.warning("title_fallback_to_file_name", title=title)
        logger.debug("course_title_generated", title=title)
        return title

    async def generate_description(self, text: str) -> str:
        prompt = _DESCRIPTION_PROMPT.format(excerpt=text[:_DESCRIPTION_EXCERPT_CHARS])
        raw = await self._client.generate(prompt, _DESCRIPTION_CONFIG)
        description = clean_description(raw)
        if not description:
            raise EmptyResponseError(
                message="Empty course description from AI model",
                provider_name=self._client.provider_name,
            )
        logger.debug("course_description_generated", chars=len(description))
        return description
