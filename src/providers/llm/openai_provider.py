"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When a custom ``openai_base_url`` is configured (TogetherAI, Fireworks, a
local Ollama ``/v1`` endpoint ...) the client points there instead of the
default OpenAI endpoint, so one adapter covers many hosted and local models.

Rate limiting is reported by the SDK as ``openai.RateLimitError`` and is
translated into our :class:`~src.utils.errors.RateLimitError` so the
structuring client can back off and fall back.
"""

from __future__ import annotations

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import EmptyResponseError, ProviderError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODELS = ["gpt-4o-mini", "gpt-4o"]


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url

        client_kwargs: dict = {
            # Local OpenAI-compatible servers ignore the key but the SDK requires one.
            "api_key": self._api_key or "not-needed",
            "timeout": openai.Timeout(settings.ai_request_timeout_seconds, connect=5.0),
            # Retries are owned by ModelFallbackClient.
            "max_retries": 0,
        }
        if self._base_url:
            client_kwargs["base_url"] = self._base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._provider_label = "openai-compatible" if self._base_url else "openai"

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
        """Send *prompt* as a single user message and return the reply text."""
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"Rate limited on {model}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APITimeoutError as exc:
            raise ProviderError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise ProviderError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise EmptyResponseError(
                message=f"Empty response from {self._provider_label}.",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def default_models(self) -> list[str]:
        return list(_DEFAULT_MODELS)

    def is_available(self) -> bool:
        """An API key or a custom base URL counts as configured."""
        return bool(self._api_key or self._base_url)

    async def validate_credentials(self) -> bool:
        """List models to verify the key without incurring inference costs."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label
