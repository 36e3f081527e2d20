"""
Generation engine - the single entry point for unlocking story chapters.

The pipeline (profile -> tasks -> numbering -> request -> generation ->
persistence -> progress -> notification) runs as a LangGraph state graph, see
app.core.graph.workflow.
"""
import threading
import weakref
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from app.agents.backends.registry import BackendRegistry
from app.agents.narrative.orchestrator import FallbackOrchestrator
from app.agents.narrative.prompt_builder import DEFAULT_EVENING_HOUR, build_request
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import ChapterNumberConflict
from app.core.graph.state import UnlockState
from app.core.graph.workflow import build_unlock_graph
from app.core.logger import get_logger, log_chapter_event, log_error
from app.db.models import Chapter
from app.services.notifications import NotificationSink, build_notification_sink
from app.services.profile_store import ProfileStore, SQLProfileStore
from app.services.progress import DEFAULT_TAIL_CHARS, ProgressTracker

logger = get_logger("engine")

DEFAULT_PERSIST_RETRIES = 3


class GenerationEngine:

    def __init__(
        self,
        store: ProfileStore,
        registry: BackendRegistry,
        notifier: NotificationSink,
        clock: Callable[[], datetime] = datetime.now,
        evening_hour: int = DEFAULT_EVENING_HOUR,
        tail_chars: int = DEFAULT_TAIL_CHARS,
        persist_retries: int = DEFAULT_PERSIST_RETRIES,
    ):
        self.store = store
        self.notifier = notifier
        self.tracker = ProgressTracker(store, tail_chars=tail_chars)
        self.orchestrator = FallbackOrchestrator(registry)
        self.clock = clock
        self.evening_hour = evening_hour
        self.persist_retries = persist_retries

        # One lock per child: numbering and persistence of a chapter happen
        # under it, so two triggers for the same child cannot race in-process.
        # Entries go away once no run holds the lock.
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

        self.graph = build_unlock_graph(self)

    # ==================== PUBLIC API ====================

    def unlock_chapter_for_completed_tasks(self, child_id: int, completed_task_record_ids: Sequence[int]) -> Optional[Chapter]:
        """
        Write, store and announce the next chapter for the child's approved tasks.

        Returns None when the child cannot be resolved or none of the task
        records is approved. Otherwise always returns a chapter; if it could
        not be stored, the returned chapter has no id.
        """
        return self._run({
            "child_id": child_id,
            "task_record_ids": list(completed_task_record_ids),
            "allow_empty_tasks": False,
        })

    def continue_story(self, child_id: int) -> Optional[Chapter]:
        """Next chapter without new tasks. Only valid once the story has begun."""
        return self._run({
            "child_id": child_id,
            "task_record_ids": [],
            "allow_empty_tasks": True,
        })

    def mark_chapter_read(self, chapter_id: int) -> Optional[Chapter]:
        return self.tracker.mark_chapter_read(chapter_id)

    def list_chapters(self, child_id: int) -> List[Chapter]:
        profile = self.store.get_child_profile(child_id)
        return self.store.list_chapters(child_id, profile.world_theme)

    # ==================== RUN ====================

    def _lock_for(self, child_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(child_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[child_id] = lock
            return lock

    def _recursion_limit(self) -> int:
        # Straight run plus plan/build_request/generate/persist once per conflict retry
        return 10 + 4 * self.persist_retries

    def _run(self, inputs: UnlockState) -> Optional[Chapter]:
        child_id = inputs["child_id"]
        with self._lock_for(child_id):
            try:
                final = self.graph.invoke(inputs, {"recursion_limit": self._recursion_limit()})
            except Exception as e:
                log_error("Chapter unlock failed", e, {"child_id": child_id})
                return None

        if final.get("error"):
            logger.info(f"No chapter unlocked for child {child_id}: {final['error']}")
            return None
        return final.get("chapter")

    # ==================== NODES ====================

    def resolve_profile_node(self, state: UnlockState) -> UnlockState:
        try:
            profile = self.store.get_child_profile(state["child_id"])
        except Exception as e:
            log_error("Profile resolution failed", e, {"child_id": state["child_id"]})
            return {"error": f"Profile resolution failed: {e}"}
        return {"profile": profile, "error": None}

    def resolve_tasks_node(self, state: UnlockState) -> UnlockState:
        try:
            titles = self.store.get_approved_task_titles(state.get("task_record_ids", []))
        except Exception as e:
            log_error("Task title resolution failed", e, {"child_id": state["child_id"]})
            return {"error": f"Task resolution failed: {e}"}

        if not titles and not state.get("allow_empty_tasks"):
            return {"task_titles": [], "error": "No approved tasks to reward"}
        return {"task_titles": titles}

    def plan_chapter_node(self, state: UnlockState) -> UnlockState:
        profile = state["profile"]
        chapter_number = self.tracker.next_chapter_number(profile.child_id, profile.world_theme)

        if chapter_number == 1 and not state.get("task_titles"):
            return {"chapter_number": chapter_number, "error": "The first chapter needs completed tasks"}

        tail = self.tracker.continuity_tail(profile.child_id, profile.world_theme, chapter_number)
        return {"chapter_number": chapter_number, "continuity_tail": tail}

    def build_request_node(self, state: UnlockState) -> UnlockState:
        request = build_request(
            state["profile"],
            state.get("task_titles", []),
            state.get("continuity_tail"),
            state["chapter_number"],
            now=self.clock(),
            evening_hour=self.evening_hour,
        )
        return {"request": request}

    def generate_node(self, state: UnlockState) -> UnlockState:
        result = self.orchestrator.generate(state["request"])
        chapter = result.chapter
        log_chapter_event(
            chapter.child_id, chapter.chapter_number, "generated",
            f"backend={result.backend} fallback={result.fallback_used}",
        )
        return {"result": result, "chapter": chapter}

    def persist_node(self, state: UnlockState) -> UnlockState:
        chapter = state["chapter"]
        conflicts = state.get("conflicts", 0)

        try:
            saved = self.store.create_chapter(chapter)
        except ChapterNumberConflict as conflict:
            if conflicts >= self.persist_retries:
                log_error("Chapter number still taken after retries, returning unsaved chapter", conflict)
                return {"chapter": chapter, "persisted": False, "replan": False}
            # Number, continuity tail and text are all planned again
            logger.warning(f"{conflict}; replanning (retry {conflicts + 1}/{self.persist_retries})")
            return {"persisted": False, "replan": True, "conflicts": conflicts + 1}
        except Exception as e:
            # Better a dangling chapter than a lost one
            log_error("Chapter persistence failed, returning unsaved chapter", e,
                      {"child_id": chapter.child_id, "chapter": chapter.chapter_number})
            return {"chapter": chapter, "persisted": False, "replan": False}

        log_chapter_event(saved.child_id, saved.chapter_number, "persisted", f"id={saved.id} title={saved.title}")
        return {"chapter": saved, "persisted": True, "replan": False}

    def commit_progress_node(self, state: UnlockState) -> UnlockState:
        chapter = state["chapter"]
        committed = self.tracker.commit_progress(chapter.child_id, chapter.world_theme, chapter.chapter_number)
        return {"progress_committed": committed}

    def notify_node(self, state: UnlockState) -> UnlockState:
        chapter = state["chapter"]
        try:
            self.notifier.notify_chapter_unlocked(chapter.child_id, chapter.title)
        except Exception as e:
            logger.warning(f"Unlock notification failed for child {chapter.child_id}: {e}")
            return {"notified": False}
        return {"notified": True}


def build_engine(db_engine=None, config: Optional[Settings] = None) -> GenerationEngine:
    """Wire the engine from settings: SQL store, registered backends, notification sinks."""
    config = config or default_settings
    if db_engine is None:
        from app.db.session import engine as db_engine

    return GenerationEngine(
        store=SQLProfileStore(db_engine),
        registry=BackendRegistry.from_settings(config),
        notifier=build_notification_sink(db_engine, config),
        evening_hour=config.EVENING_HOUR,
        tail_chars=config.CONTINUITY_TAIL_CHARS,
        persist_retries=config.PERSIST_CONFLICT_RETRIES,
    )
