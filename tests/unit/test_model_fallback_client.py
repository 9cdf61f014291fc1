"""Unit tests for ModelFallbackClient - backoff, fallback and error mapping."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.llm_provider import ILLMProvider
from src.models.generation import GenerationConfig
from src.services.generation.model_fallback_client import ModelFallbackClient
from src.utils.errors import (
    AllModelsRateLimitedError,
    ConfigurationError,
    EmptyResponseError,
    ProviderError,
    RateLimitError,
)
from tests.conftest import SleepRecorder


def _provider(side_effect) -> MagicMock:
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.generate_content = AsyncMock(side_effect=side_effect)
    return mock


def _rate_limited() -> RateLimitError:
    return RateLimitError(message="429", provider_name="mock-llm")


def _models_called(provider: MagicMock) -> list[str]:
    return [c.args[0] for c in provider.generate_content.call_args_list]


class TestBackoff:
    @pytest.mark.asyncio
    async def test_three_rate_limits_then_success_stays_on_primary(self) -> None:
        provider = _provider([_rate_limited(), _rate_limited(), _rate_limited(), "ok"])
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a", "model-b"], sleep=sleeper)

        result = await client.generate("prompt")

        assert result == "ok"
        assert sleeper.delays == [2.0, 4.0, 8.0]
        assert _models_called(provider) == ["model-a"] * 4

    @pytest.mark.asyncio
    async def test_custom_base_delay(self) -> None:
        provider = _provider([_rate_limited(), "ok"])
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a"], base_delay=0.5, sleep=sleeper)

        await client.generate("prompt")

        assert sleeper.delays == [0.5]

    @pytest.mark.asyncio
    async def test_no_sleep_on_first_try_success(self) -> None:
        provider = _provider(["ok"])
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a"], sleep=sleeper)

        assert await client.generate("prompt") == "ok"
        assert sleeper.delays == []


class TestFallback:
    @pytest.mark.asyncio
    async def test_exhausted_primary_falls_back_to_next_model(self) -> None:
        provider = _provider([_rate_limited()] * 4 + ["from b"])
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a", "model-b"], sleep=sleeper)

        result = await client.generate("prompt")

        assert result == "from b"
        assert _models_called(provider) == ["model-a"] * 4 + ["model-b"]
        # No sleep between the last failed retry of A and the first call to B
        assert sleeper.delays == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_retry_counter_resets_for_each_model(self) -> None:
        provider = _provider([_rate_limited()] * 4 + [_rate_limited(), "ok"])
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a", "model-b"], sleep=sleeper)

        await client.generate("prompt")

        assert sleeper.delays == [2.0, 4.0, 8.0, 2.0]

    @pytest.mark.asyncio
    async def test_all_models_exhausted(self) -> None:
        provider = _provider(_rate_limited())
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a", "model-b"], sleep=sleeper)

        with pytest.raises(AllModelsRateLimitedError) as exc_info:
            await client.generate("prompt")

        assert provider.generate_content.await_count == 8
        assert "rate-limited" in exc_info.value.message


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_provider_error_propagates_without_retry(self) -> None:
        provider = _provider([ProviderError(message="bad request", provider_name="mock-llm")])
        sleeper = SleepRecorder()
        client = ModelFallbackClient(provider, ["model-a", "model-b"], sleep=sleeper)

        with pytest.raises(ProviderError, match="bad request"):
            await client.generate("prompt")

        assert provider.generate_content.await_count == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped_as_provider_error(self) -> None:
        provider = _provider([RuntimeError("socket closed")])
        client = ModelFallbackClient(provider, ["model-a"], sleep=SleepRecorder())

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("prompt")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.provider_name == "mock-llm"

    @pytest.mark.asyncio
    async def test_blank_text_is_empty_response(self) -> None:
        provider = _provider(["   \n"])
        client = ModelFallbackClient(provider, ["model-a"], sleep=SleepRecorder())

        with pytest.raises(EmptyResponseError):
            await client.generate("prompt")

    def test_empty_model_list_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            ModelFallbackClient(_provider(["ok"]), [])


class TestGenerationConfig:
    @pytest.mark.asyncio
    async def test_config_is_forwarded(self) -> None:
        provider = _provider(["ok"])
        client = ModelFallbackClient(provider, ["model-a"], sleep=SleepRecorder())

        await client.generate("prompt", GenerationConfig(temperature=0.3, max_output_tokens=8192))

        kwargs = provider.generate_content.call_args.kwargs
        assert kwargs == {"temperature": 0.3, "max_output_tokens": 8192}

    def test_models_are_frozen(self) -> None:
        models = ["model-a", "model-b"]
        client = ModelFallbackClient(_provider(["ok"]), models)
        models.append("model-c")

        assert client.models == ("model-a", "model-b")
        assert client.provider_name == "mock-llm"
