from typing import List, Optional, Sequence

from app.agents.backends.base import StoryBackend
from app.core.config import Settings, settings as default_settings
from app.core.logger import get_logger

logger = get_logger("backends.registry")


class BackendRegistry:
    """
    Ordered list of configured backends plus the index of the default one.

    Built explicitly and handed to the engine; there is no process-wide
    provider table.
    """

    def __init__(self, backends: Sequence[StoryBackend], default_index: int = 0):
        self.backends: List[StoryBackend] = list(backends)
        if self.backends and not 0 <= default_index < len(self.backends):
            raise ValueError(f"default_index {default_index} out of range for {len(self.backends)} backends")
        self.default_index = default_index

    def __len__(self) -> int:
        return len(self.backends)

    @property
    def names(self) -> List[str]:
        return [b.name for b in self.backends]

    @property
    def primary(self) -> Optional[StoryBackend]:
        if not self.backends:
            return None
        return self.backends[self.default_index]

    @property
    def secondaries(self) -> List[StoryBackend]:
        """Every non-default backend, in registration order."""
        return [b for i, b in enumerate(self.backends) if i != self.default_index]

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "BackendRegistry":
        """Register every backend that has an API key, default first if configured."""
        backends: List[StoryBackend] = []

        if config.GROQ_API_KEY:
            from app.agents.backends.groq_backend import GroqBackend
            backends.append(GroqBackend(
                api_key=config.GROQ_API_KEY.strip(),
                models=config.GROQ_MODELS,
                timeout=config.BACKEND_TIMEOUT_SECONDS,
            ))

        if config.OPENAI_API_KEY:
            from app.agents.backends.openai_backend import OpenAIBackend
            backends.append(OpenAIBackend(
                api_key=config.OPENAI_API_KEY.strip(),
                models=config.OPENAI_MODELS,
                timeout=config.BACKEND_TIMEOUT_SECONDS,
            ))

        if config.GEMINI_API_KEY:
            from app.agents.backends.gemini_backend import GeminiBackend
            backends.append(GeminiBackend(
                api_key=config.GEMINI_API_KEY.strip(),
                models=config.GEMINI_MODELS,
                api_versions=config.GEMINI_API_VERSIONS,
                timeout=config.BACKEND_TIMEOUT_SECONDS,
            ))

        names = [b.name for b in backends]
        if config.DEFAULT_AI_PROVIDER in names:
            default_index = names.index(config.DEFAULT_AI_PROVIDER)
        else:
            default_index = 0
            if backends:
                logger.warning(
                    f"Default provider '{config.DEFAULT_AI_PROVIDER}' is not configured, using '{names[0]}'"
                )
            else:
                logger.warning("No generative backend configured, every chapter will use curated content")

        logger.info(f"Backends registered: {names} (default: {names[default_index] if names else None})")
        return cls(backends, default_index=default_index)
