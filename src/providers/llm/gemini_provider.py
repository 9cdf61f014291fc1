"""Gemini LLM provider adapter.

Calls the Generative Language REST API directly with ``httpx`` rather than
through an SDK: the ingestion pipeline needs the raw HTTP status to tell a
rate limit (429) apart from every other failure, and one POST endpoint is
all it uses.

Request shape::

    POST {base_url}/models/{model}:generateContent?key={api_key}
    {"contents": [{"parts": [{"text": prompt}]}],
     "generationConfig": {"temperature": 0.7, "maxOutputTokens": 1024}}

The answer text lives at ``candidates[0].content.parts[0].text``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import ConfigurationError, EmptyResponseError, ProviderError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODELS = ["gemini-2.5-flash", "gemini-2.5-flash-lite"]


def _extract_text(payload: dict[str, Any]) -> str | None:
    """Pull the first candidate's first text part out of a response body."""
    candidates = payload.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None


class GeminiLLMProvider(ILLMProvider):
    """LLM provider backed by the Gemini ``generateContent`` endpoint.

    Parameters
    ----------
    settings:
        Supplies ``gemini_api_key``, ``gemini_base_url`` and the request timeout.
    http_client:
        Optional shared ``httpx.AsyncClient``.  When omitted the provider
        creates its own.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.gemini_api_key
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.ai_request_timeout_seconds, connect=5.0)
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def generate_content(
        self,
        model: str,
        prompt: str,
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
    ) -> str:
        """POST one prompt to *model* and return the first candidate's text."""
        if not self._api_key:
            raise ConfigurationError(
                message="AI is not configured. Please set GEMINI_API_KEY.",
                provider_name=self.get_provider_name(),
            )

        url = f"{self._base_url}/models/{model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
        }

        try:
            response = await self._client.post(url, params={"key": self._api_key}, json=body)
        except httpx.HTTPError as exc:
            raise ProviderError(
                message=f"Gemini request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code == 429:
            raise RateLimitError(
                message=f"Rate limited on {model}",
                provider_name=self.get_provider_name(),
            )

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_error:
            error = payload.get("error") if isinstance(payload, dict) else None
            detail = error.get("message") if isinstance(error, dict) else None
            raise ProviderError(
                message=detail or f"Gemini API error ({response.status_code})",
                provider_name=self.get_provider_name(),
            )

        text = _extract_text(payload) if isinstance(payload, dict) else None
        if not text:
            raise EmptyResponseError(
                message="Empty response from Gemini.",
                provider_name=self.get_provider_name(),
            )

        usage = payload.get("usageMetadata") or {}
        logger.info(
            "gemini_completion",
            model=model,
            prompt_tokens=usage.get("promptTokenCount"),
            output_tokens=usage.get("candidatesTokenCount"),
        )
        return text

    def default_models(self) -> list[str]:
        return list(_DEFAULT_MODELS)

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the API key without spending tokens."""
        if not self.is_available():
            return False
        try:
            response = await self._client.get(
                f"{self._base_url}/models", params={"key": self._api_key}
            )
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    def get_provider_name(self) -> str:
        return "gemini"
