"""
Fallback orchestrator - writes one chapter, whatever it takes.

Tiers, strictly in order, first success wins:
    1. the registry's default backend
    2. every other registered backend, in registration order
    3. the curated chapter for the child's theme (cannot fail)

A tier fails when the backend raises, returns nothing, or returns text the
safety filter rejects. Failures are logged and never reach the caller.
Backends are called one at a time.
"""

from app.agents.backends.base import StoryBackend
from app.agents.backends.registry import BackendRegistry
from app.agents.narrative.fallback import curated_chapter
from app.agents.narrative.safety import find_violations
from app.agents.narrative.titles import extract_title
from app.agents.story_types import GenerationRequest, GenerationResult
from app.core.exceptions import ContentRejectedError, EmptyContentError
from app.core.logger import get_logger
from app.db.models import Chapter, utcnow

logger = get_logger("orchestrator")


class FallbackOrchestrator:

    def __init__(self, registry: BackendRegistry):
        self.registry = registry

    def _tiers(self):
        if self.registry.primary is not None:
            yield "primary", self.registry.primary
        for backend in self.registry.secondaries:
            yield "secondary", backend

    def _attempt(self, backend: StoryBackend, request: GenerationRequest) -> Chapter:
        text = backend.generate_chapter(request)
        if not text or not text.strip():
            raise EmptyContentError(f"{backend.name} returned no content")

        violations = find_violations(text)
        if violations or not backend.moderate_content(text):
            raise ContentRejectedError(backend.name, violations)

        text = text.strip()
        now = utcnow()
        return Chapter(
            child_id=request.child_id,
            world_theme=request.world_theme,
            chapter_number=request.chapter_number,
            title=extract_title(text, request.chapter_number),
            content=text,
            generated_by=backend.name,
            fallback_used=False,
            is_read=False,
            unlocked_at=now,
            created_at=now,
        )

    def generate(self, request: GenerationRequest) -> GenerationResult:
        errors = []
        for tier, backend in self._tiers():
            logger.info(f"📝 Chapter {request.chapter_number} for child {request.child_id}: trying {tier} backend '{backend.name}'")
            try:
                chapter = self._attempt(backend, request)
            except Exception as exc:
                logger.warning(f"❌ {tier} backend '{backend.name}' failed: {type(exc).__name__}: {exc}")
                errors.append(f"{backend.name}: {exc}")
                continue

            logger.info(f"✅ {tier} backend '{backend.name}' wrote chapter {request.chapter_number}")
            return GenerationResult(success=True, chapter=chapter, backend=backend.name)

        if errors:
            logger.warning(f"All backends failed for child {request.child_id}, using curated chapter")
        else:
            logger.info(f"No backend configured, using curated chapter for child {request.child_id}")

        return GenerationResult(
            success=True,
            chapter=curated_chapter(request),
            error_message="; ".join(errors) or None,
            fallback_used=True,
            backend="curated",
        )
