from typing import Callable, Dict, List, Optional, Tuple

from google import genai
from google.genai import types

from app.agents.backends.base import (
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    WRITER_SYSTEM_PROMPT,
    default_moderation,
    run_cascade,
)
from app.agents.narrative.prompt_builder import render_prompt
from app.agents.story_types import GenerationRequest

DEFAULT_GEMINI_MODELS = ["gemini-2.5-flash", "gemini-2.0-flash"]
DEFAULT_GEMINI_API_VERSIONS = ["v1", "v1beta"]


class GeminiBackend:
    """
    Chapter writer backed by the Gemini API.

    Model availability differs between API versions, so the cascade walks
    every (api_version, model) pair: all models on the first version, then all
    models on the next one.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        models: Optional[List[str]] = None,
        api_versions: Optional[List[str]] = None,
        timeout: float = 30.0,
        client_factory: Optional[Callable[[str], object]] = None,
    ):
        self.api_key = api_key
        self.models = list(models or DEFAULT_GEMINI_MODELS)
        self.api_versions = list(api_versions or DEFAULT_GEMINI_API_VERSIONS)
        self.timeout = timeout
        self._client_factory = client_factory or self._make_client
        self._clients: Dict[str, object] = {}

    def _make_client(self, api_version: str):
        return genai.Client(
            api_key=self.api_key,
            http_options=types.HttpOptions(api_version=api_version, timeout=int(self.timeout * 1000)),
        )

    def _client(self, api_version: str):
        if api_version not in self._clients:
            self._clients[api_version] = self._client_factory(api_version)
        return self._clients[api_version]

    @property
    def options(self) -> List[Tuple[str, str]]:
        return [(version, model) for version in self.api_versions for model in self.models]

    def generate_chapter(self, request: GenerationRequest) -> str:
        prompt = render_prompt(request)
        config = types.GenerateContentConfig(
            system_instruction=WRITER_SYSTEM_PROMPT,
            temperature=GENERATION_TEMPERATURE,
            max_output_tokens=GENERATION_MAX_TOKENS,
        )

        def attempt(option: Tuple[str, str]) -> str:
            api_version, model = option
            response = self._client(api_version).models.generate_content(
                model=model,
                contents=prompt,
                config=config,
            )
            return response.text

        return run_cascade(self.name, self.options, attempt)

    def moderate_content(self, text: str) -> bool:
        return default_moderation(text)
