"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Settings are read from two sources (in priority order):
#
#   1. **Environment variables** - e.g., GEMINI_API_KEY=AIza...
#   2. **.env file** - key=value lines in the project root .env file
#
# Field `gemini_api_key` maps to env var `GEMINI_API_KEY`.  List fields
# such as `ai_models` are given as JSON: AI_MODELS='["gemini-2.5-flash"]'.
#
# The .env file is never committed.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Lectern application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === LLM Providers ===
    # Empty string = "not configured"; main.py picks the first configured one.
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1"
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs (TogetherAI, Ollama, etc.)
    anthropic_api_key: str = ""

    # === AI Structuring Client ===
    # Ordered candidate models, primary first.  Empty = config.yaml, then provider defaults.
    ai_models: list[str] = []
    ai_max_retries: int = 3
    ai_base_delay_seconds: float = 2.0
    ai_request_timeout_seconds: float = 60.0

    # === Ingestion ===
    max_upload_bytes: int = 10 * 1024 * 1024
    min_content_chars: int = 100
    words_per_minute: int = 200
    chunker_max_input_chars: int = 60_000

    # === Course Store ===
    course_db_path: str = "data/courses.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.gemini_api_key:
            providers.append("gemini")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key or self.openai_base_url:
            providers.append("openai")
        return providers
