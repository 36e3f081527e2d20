from typing import List, Optional

from groq import Groq

from app.agents.backends.base import (
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    WRITER_SYSTEM_PROMPT,
    default_moderation,
    run_cascade,
)
from app.agents.narrative.prompt_builder import render_prompt
from app.agents.story_types import GenerationRequest

DEFAULT_GROQ_MODELS = ["llama-3.3-70b-versatile", "openai/gpt-oss-120b", "llama-3.1-8b-instant"]


class GroqBackend:
    """Chapter writer backed by Groq chat completions, cascading across models."""

    name = "groq"

    def __init__(self, api_key: Optional[str] = None, models: Optional[List[str]] = None,
                 timeout: float = 30.0, client=None):
        self.models = list(models or DEFAULT_GROQ_MODELS)
        # SDK retries are disabled: the model cascade is our retry policy
        self.client = client or Groq(api_key=api_key, timeout=timeout, max_retries=0)

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
            return completion.choices[0].message.content

        return run_cascade(self.name, self.models, attempt)

    def moderate_content(self, text: str) -> bool:
        return default_moderation(text)
