from typing import Optional

from app.core.logger import get_logger, log_error
from app.db.models import Chapter
from app.services.profile_store import ProfileStore

logger = get_logger("progress")

DEFAULT_TAIL_CHARS = 200


class ProgressTracker:
    """
    Chapter numbering and per-theme progress counters.

    The next chapter number always comes from the highest stored Chapter, never
    from StoryProgress, so a run that updated one but not the other heals
    itself on the next call.
    """

    def __init__(self, store: ProfileStore, tail_chars: int = DEFAULT_TAIL_CHARS):
        self.store = store
        self.tail_chars = tail_chars

    def next_chapter_number(self, child_id: int, world_theme: str) -> int:
        return max(self.store.get_max_chapter_number(child_id, world_theme), 0) + 1

    def continuity_tail(self, child_id: int, world_theme: str, chapter_number: int) -> Optional[str]:
        """Opening excerpt of the previous chapter, or None for chapter 1."""
        if chapter_number <= 1:
            return None

        body = self.store.get_chapter_body(child_id, world_theme, chapter_number - 1)
        if not body or not body.strip():
            logger.warning(f"No body for chapter {chapter_number - 1} of child {child_id} ({world_theme})")
            return None

        return body[:self.tail_chars]

    def commit_progress(self, child_id: int, world_theme: str, chapter_number: int) -> bool:
        """Best-effort counter update. Returns False instead of raising."""
        try:
            self.store.upsert_progress(child_id, world_theme, chapter_number)
            return True
        except Exception as e:
            log_error("Progress commit failed", e, {"child_id": child_id, "theme": world_theme, "chapter": chapter_number})
            return False

    def mark_chapter_read(self, chapter_id: int) -> Optional[Chapter]:
        return self.store.mark_chapter_read(chapter_id)
