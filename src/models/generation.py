"""Generation settings passed through to LLM providers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GenerationConfig(BaseModel):
    """Sampling settings for one prompt.

    Mirrors the provider-side ``generationConfig`` block
    (``temperature`` / ``maxOutputTokens``).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1024, gt=0)
