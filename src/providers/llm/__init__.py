"""LLM provider adapters.

Three concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - GeminiLLMProvider    - gemini-2.5-flash / gemini-2.5-flash-lite over REST (httpx)
    - OpenAILLMProvider    - gpt-4o-mini / gpt-4o, or any OpenAI-compatible server
    - AnthropicLLMProvider - Claude via the Messages API

main.py picks the first provider whose key is configured (Gemini, then
Anthropic, then OpenAI) and wraps it in a ModelFallbackClient.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.gemini_provider import GeminiLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "GeminiLLMProvider", "OpenAILLMProvider"]
