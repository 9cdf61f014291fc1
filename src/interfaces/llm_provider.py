"""Abstract base class for LLM service providers.

Defines the contract for any large-language-model backend used to generate
course titles, descriptions and chapter splits.  Implementations wrap the
Gemini REST API, the OpenAI SDK (and OpenAI-compatible servers) or the
Anthropic SDK.  Retry and model fallback are NOT a provider concern; they
live in :class:`~src.services.generation.model_fallback_client.ModelFallbackClient`,
which only needs providers to report rate limiting distinctly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: GeminiLLMProvider, OpenAILLMProvider, AnthropicLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for one raw model call."""

    @abstractmethod
    async def generate_content(
        self,
        model: str,
        prompt: str,
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
    ) -> str:
        """Run a single prompt against *model* and return its text.

        Parameters
        ----------
        model:
            Provider-specific model identifier, e.g. ``"gemini-2.5-flash"``.
        prompt:
            The complete prompt text.
        temperature:
            Sampling temperature.
        max_output_tokens:
            Upper bound on the number of tokens in the response.

        Raises
        ------
        src.utils.errors.RateLimitError
            The provider answered with a rate-limit status for this model.
        src.utils.errors.ProviderError
            Any other provider or transport failure.
        src.utils.errors.EmptyResponseError
            The call succeeded but carried no text.
        """

    @abstractmethod
    def default_models(self) -> list[str]:
        """Return this provider's candidate models, primary first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"gemini"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm credentials are valid."""
