"""Retry and model-fallback policy over a single LLM provider.

Every AI call in the ingestion pipeline (title, description, chunking) goes
through :class:`ModelFallbackClient`.  The policy, per call:

1. Try the first model in the list.
2. On a rate-limit signal, sleep ``base_delay * 2**attempt`` seconds
   (2 s, 4 s, 8 s with the defaults) and retry the *same* model, up to
   ``max_retries`` times.
3. When a model's retries are exhausted, move on to the next model with
   the retry counter reset.
4. When every model is exhausted, raise :class:`AllModelsRateLimitedError`.

Any other provider failure is raised immediately as
:class:`ProviderError`; a blank answer is :class:`EmptyResponseError`.

The model list is fixed at construction and all counters live on the
call's stack, so one client can serve concurrent ingestions safely.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.generation import GenerationConfig
from src.utils.errors import (
    AllModelsRateLimitedError,
    ConfigurationError,
    EmptyResponseError,
    LecternError,
    ProviderError,
    RateLimitError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MAX_RETRIES = 3
_DEFAULT_BASE_DELAY = 2.0


class ModelFallbackClient:
    """Calls an :class:`ILLMProvider` with exponential backoff and model fallback.

    Parameters
    ----------
    provider:
        The LLM provider that performs the raw ``generate_content`` call.
    models:
        Candidate model identifiers, primary first.
    max_retries:
        Rate-limit retries per model before falling back.
    base_delay:
        First backoff delay in seconds; doubles on each retry.
    sleep:
        Awaitable sleep function.  Tests inject a recorder instead of
        :func:`asyncio.sleep`.
    """

    def __init__(
        self,
        provider: ILLMProvider,
        models: Sequence[str],
        max_retries: int = _DEFAULT_MAX_RETRIES,
        base_delay: float = _DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not models:
            raise ConfigurationError(
                message="At least one AI model must be configured",
                provider_name=provider.get_provider_name(),
            )
        self._provider = provider
        self._models: tuple[str, ...] = tuple(models)
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep

    @property
    def models(self) -> tuple[str, ...]:
        return self._models

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    async def generate(self, prompt: str, config: GenerationConfig | None = None) -> str:
        """Return the first successful completion for *prompt*.

        Raises
        ------
        AllModelsRateLimitedError
            Every model stayed rate limited through all of its retries.
        ProviderError
            The provider failed for a reason other than rate limiting.
        EmptyResponseError
            The provider answered with no text.
        """
        config = config or GenerationConfig()
        provider_name = self._provider.get_provider_name()

        for model in self._models:
            attempt = 0
            while True:
                try:
                    text = await self._provider.generate_content(
                        model,
                        prompt,
                        temperature=config.temperature,
                        max_output_tokens=config.max_output_tokens,
                    )
                except RateLimitError:
                    if attempt >= self._max_retries:
                        logger.warning(
                            "model_retries_exhausted",
                            model=model,
                            retries=attempt,
                        )
                        break
                    delay = self._base_delay * (2**attempt)
                    attempt += 1
                    logger.warning(
                        "model_rate_limited",
                        model=model,
                        attempt=attempt,
                        max_retries=self._max_retries,
                        retry_in_seconds=delay,
                    )
                    await self._sleep(delay)
                    continue
                except LecternError:
                    raise
                except Exception as exc:
                    raise ProviderError(message=str(exc), provider_name=provider_name) from exc

                if not text or not text.strip():
                    raise EmptyResponseError(provider_name=provider_name)
                if model != self._models[0]:
                    logger.info("model_fallback_succeeded", model=model)
                return text

        logger.error("all_models_rate_limited", models=list(self._models))
        raise AllModelsRateLimitedError(provider_name=provider_name)
