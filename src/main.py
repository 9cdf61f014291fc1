"""Lectern FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Also exposes the standalone ``build_services`` helper for CLI or scripting
usage outside the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config, resolve_model_list
from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.providers.extraction.document_extractor import DocumentTextExtractor
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.gemini_provider import GeminiLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.store.sqlite_course_store import SQLiteCourseStore
from src.services.generation.course_copy_generator import CourseCopyGenerator
from src.services.generation.model_fallback_client import ModelFallbackClient
from src.services.ingestion.content_chunker import ContentChunker
from src.services.ingestion.file_validator import DEFAULT_ALLOWED_TYPES, FileValidator
from src.services.ingestion.ingestion_service import CourseIngestionService
from src.services.progress_service import ProgressService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# LLM provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(
    app_settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> ILLMProvider:
    """Select the first available LLM provider based on configured API keys.

    Priority order: Gemini -> Anthropic -> OpenAI-compatible.  With nothing
    configured an unkeyed Gemini provider is returned; the app still starts
    and /health reports the LLM as unavailable, while ingestion fails with
    a ConfigurationError.
    """
    if app_settings.gemini_api_key:
        return GeminiLLMProvider(settings=app_settings, http_client=http_client)
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key or app_settings.openai_base_url:
        return OpenAILLMProvider(settings=app_settings)
    return GeminiLLMProvider(settings=app_settings, http_client=http_client)


# ---------------------------------------------------------------------------
# Service assembly (shared by the web app and the CLI)
# ---------------------------------------------------------------------------


def build_services(
    app_settings: Settings,
    app_config: dict[str, Any],
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct every provider and service the ingestion pipeline needs.

    Parameters
    ----------
    app_settings:
        Environment-derived settings.
    app_config:
        The merged YAML + env configuration from :func:`load_config`.
    http_client:
        Optional shared HTTP client for REST-based providers.

    Returns
    -------
    dict
        Service instances keyed by role name.
    """
    # -- LLM + structuring client --
    llm = _build_llm_provider(app_settings, http_client=http_client)
    models = resolve_model_list(app_config, llm.get_provider_name(), llm.default_models())
    ai_client = ModelFallbackClient(
        provider=llm,
        models=models,
        max_retries=app_settings.ai_max_retries,
        base_delay=app_settings.ai_base_delay_seconds,
    )

    # -- Extraction + validation --
    extractor = DocumentTextExtractor()
    allowed_types = app_config.get("ingestion", {}).get("allowed_types") or DEFAULT_ALLOWED_TYPES
    validator = FileValidator(
        extractor=extractor,
        allowed_types=allowed_types,
        max_bytes=app_settings.max_upload_bytes,
    )

    # -- Persistence --
    course_store = SQLiteCourseStore(db_path=app_settings.course_db_path)

    # -- Services --
    copy_generator = CourseCopyGenerator(client=ai_client)
    chunker = ContentChunker(client=ai_client, max_input_chars=app_settings.chunker_max_input_chars)
    ingestion_service = CourseIngestionService(
        validator=validator,
        extractor=extractor,
        copy_generator=copy_generator,
        chunker=chunker,
        store=course_store,
        min_content_chars=app_settings.min_content_chars,
        words_per_minute=app_settings.words_per_minute,
    )
    progress_service = ProgressService(store=course_store)

    return {
        "llm": llm,
        "ai_client": ai_client,
        "extractor": extractor,
        "file_validator": validator,
        "course_store": course_store,
        "ingestion_service": ingestion_service,
        "progress_service": progress_service,
    }


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.ai_request_timeout_seconds, connect=5.0)
    )

    components = build_services(app_settings, config, http_client=http_client)
    llm: ILLMProvider = components["llm"]
    ai_client: ModelFallbackClient = components["ai_client"]

    # -- Provider registry for /health --
    provider_registry: dict[str, Any] = {
        "llm": llm.is_available(),
        "llm_provider": llm.get_provider_name(),
        "models": list(ai_client.models),
        "course_store": components["course_store"].get_provider_name(),
    }

    return {
        **components,
        "http_client": http_client,
        "provider_registry": provider_registry,
        "primary_llm_name": llm.get_provider_name(),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)
    for key, value in components.items():
        setattr(application.state, key, value)

    # Create course tables if needed
    await application.state.course_store.initialize()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        primary_llm=components["primary_llm_name"],
        models=components["provider_registry"]["models"],
    )

    yield

    # -- Shutdown: close shared httpx client --
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Lectern API",
        version=_VERSION,
        description=(
            "Upload a PDF, TXT or EPUB document and turn it into a structured "
            "course: an AI-generated title and description plus ordered "
            "chapters with summaries and word counts."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
