"""AI generation services.

- ModelFallbackClient -- retry/backoff and model-fallback policy over one
  ILLMProvider; every AI call in the pipeline goes through it.
- CourseCopyGenerator -- course title and description prompts plus cleanup.
"""

from src.services.generation.course_copy_generator import CourseCopyGenerator
from src.services.generation.model_fallback_client import ModelFallbackClient

__all__ = ["CourseCopyGenerator", "ModelFallbackClient"]
