"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  - Static defaults checked into the repo
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# Settings-derived values on top.  Keys that Settings leaves empty
# (e.g. no AI_MODELS override) are not merged, so the YAML default wins.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Optional pre-built Settings; a fresh one is read otherwise.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "ai": {
            "available_providers": settings.get_available_llm_providers(),
            "max_retries": settings.ai_max_retries,
            "base_delay_seconds": settings.ai_base_delay_seconds,
        },
        "ingestion": {
            "max_upload_bytes": settings.max_upload_bytes,
            "min_content_chars": settings.min_content_chars,
            "words_per_minute": settings.words_per_minute,
            "chunker_max_input_chars": settings.chunker_max_input_chars,
        },
        "storage": {
            "course_db_path": settings.course_db_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }
    if settings.ai_models:
        env_overrides["ai"]["models"] = list(settings.ai_models)

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def resolve_model_list(config: dict, provider_name: str, fallback: list[str]) -> list[str]:
    """Return the candidate model order for *provider_name*.

    ``ai.models`` may be a flat list (applies to whichever provider is
    active) or a mapping keyed by provider name.  *fallback* (the
    provider's own defaults) is used when neither yields anything.
    """
    models = config.get("ai", {}).get("models")
    if isinstance(models, dict):
        models = models.get(provider_name)
    if isinstance(models, list) and models:
        return [str(m) for m in models]
    return list(fallback)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
