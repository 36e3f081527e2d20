from typing import List, Optional

from openai import OpenAI

from app.agents.backends.base import (
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    WRITER_SYSTEM_PROMPT,
    default_moderation,
    run_cascade,
)
from app.agents.narrative.prompt_builder import render_prompt
from app.agents.story_types import GenerationRequest

DEFAULT_OPENAI_MODELS = ["gpt-4o-mini", "gpt-3.5-turbo"]


class OpenAIBackend:
    """Chapter writer backed by OpenAI chat completions."""

    name = "openai"

    def __init__(self, api_key: Optional[str] = None, models: Optional[List[str]] = None,
                 timeout: float = 30.0, client=None):
        self.models = list(models or DEFAULT_OPENAI_MODELS)
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def generate_chapter(self, request: GenerationRequest) -> str:
        prompt = render_prompt(request)

        def attempt(model: str) -> str:
            completion = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": WRITER_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=GENERATION_TEMPERATURE,
                max_tokens=GENERATION_MAX_TOKENS,
            )
            if not completion.choices:
                return ""
            return completion.choices[0].message.content

        return run_cascade(self.name, self.models, attempt)

    def moderate_content(self, text: str) -> bool:
        return default_moderation(text)
