"""Reader for plain-text uploads."""

from __future__ import annotations

import structlog

from src.models.course import ExtractionResult

logger = structlog.get_logger(logger_name=__name__)


class PlainTextReader:
    """Decodes text files as UTF-8 (BOM tolerated), falling back to Latin-1.

    Latin-1 maps every byte, so decoding never fails; line endings are
    normalised to ``\\n``.
    """

    def read(self, data: bytes) -> ExtractionResult:
        try:
            text = data.decode("utf-8-sig")
            encoding = "utf-8"
        except UnicodeDecodeError:
            text = data.decode("latin-1")
            encoding = "latin-1"
            logger.debug("text_decoded_as_latin1")

        text = text.replace("\r\n", "\n").replace("\r", "\n")
        return ExtractionResult(text=text, metadata={"encoding": encoding})
