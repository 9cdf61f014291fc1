"""Public interface definitions for all external collaborators.

Every external service the ingestion pipeline touches (LLM APIs, document
parsers, the course database) is reached only through the abstract base
classes in this package.  Concrete adapters live in ``src/providers/`` and
are wired together in ``src/main.py``; tests inject fakes instead.

CONCRETE PROVIDER MAP:
    Interface        →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    ILLMProvider     →  GeminiLLMProvider, OpenAILLMProvider,
                        AnthropicLLMProvider
    ITextExtractor   →  DocumentTextExtractor
    ICourseStore     →  SQLiteCourseStore
"""

from src.interfaces.course_store import ICourseStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.text_extractor import ITextExtractor

__all__ = [
    "ICourseStore",
    "ILLMProvider",
    "ITextExtractor",
]
