"""
Capability surface shared by every generative backend.

A backend writes a chapter for a GenerationRequest and can vet text it
produced. Internally it may walk an ordered list of options (model ids, API
versions) and return the first one that answers.
"""
from typing import Callable, Iterable, Protocol, TypeVar, runtime_checkable

from app.agents.context_loader import load_context
from app.agents.narrative.safety import is_safe
from app.agents.story_types import GenerationRequest
from app.core.exceptions import BackendExhaustedError, EmptyContentError
from app.core.logger import log_backend_attempt

# Load hardened system prompt from context file
WRITER_SYSTEM_PROMPT = load_context("writer")

GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 1024

Option = TypeVar("Option")


@runtime_checkable
class StoryBackend(Protocol):
    name: str

    def generate_chapter(self, request: GenerationRequest) -> str:
        ...

    def moderate_content(self, text: str) -> bool:
        ...


def default_moderation(text: str) -> bool:
    return is_safe(text)


def run_cascade(backend_name: str, options: Iterable[Option], attempt: Callable[[Option], str]) -> str:
    """
    Call `attempt` for each option in order and return the first non-empty text.

    Raises BackendExhaustedError carrying the last failure once every option
    has failed.
    """
    last_error = None
    for option in options:
        try:
            text = attempt(option)
            if not text or not text.strip():
                raise EmptyContentError(f"{backend_name} returned no content for {option}")
            log_backend_attempt(backend_name, "generate", f"option={option}")
            return text.strip()
        except Exception as e:
            last_error = e
            log_backend_attempt(backend_name, "generate", f"option={option} error={type(e).__name__}: {e}", success=False)

    raise BackendExhaustedError(backend_name, last_error)
