"""
Profile Store - child attributes, chapter history and progress counters.

`ProfileStore` is the contract the engine consumes; `SQLProfileStore` is the
SQLModel implementation used by the app. Every call opens its own short
session so the store can be shared by concurrent callers.
"""
from typing import Dict, List, Optional, Protocol, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from app.agents.story_types import ChildProfile
from app.core.exceptions import ChapterNumberConflict, ProfileNotFoundError
from app.core.logger import get_logger
from app.db.models import Chapter, Child, Chore, ChoreCompletion, ChoreStatus, StoryProgress, utcnow

logger = get_logger("profile_store")

UNTITLED_CHORE = "completed chore"


class ProfileStore(Protocol):

    def get_child_profile(self, child_id: int) -> ChildProfile: ...

    def get_approved_task_titles(self, task_record_ids: Sequence[int]) -> List[str]: ...

    def get_max_chapter_number(self, child_id: int, world_theme: str) -> int: ...

    def get_chapter_body(self, child_id: int, world_theme: str, chapter_number: int) -> Optional[str]: ...

    def create_chapter(self, chapter: Chapter) -> Chapter: ...

    def upsert_progress(self, child_id: int, world_theme: str, chapter_number: int) -> None: ...

    def mark_chapter_read(self, chapter_id: int) -> Optional[Chapter]: ...

    def list_chapters(self, child_id: int, world_theme: str) -> List[Chapter]: ...


class SQLProfileStore:

    def __init__(self, engine):
        self.engine = engine

    def get_child_profile(self, child_id: int) -> ChildProfile:
        with Session(self.engine) as session:
            child = session.get(Child, child_id)
            if child is None:
                raise ProfileNotFoundError(f"Child {child_id} not found")
            return ChildProfile(
                child_id=child.id,
                name=child.name,
                age_bracket=child.age_bracket,
                world_theme=child.world_theme,
            )

    def get_approved_task_titles(self, task_record_ids: Sequence[int]) -> List[str]:
        """Titles of the approved completions among the given ids, in the order given."""
        if not task_record_ids:
            return []

        with Session(self.engine) as session:
            statement = (
                select(ChoreCompletion.id, Chore.title)
                .join(Chore, Chore.id == ChoreCompletion.chore_id)
                .where(col(ChoreCompletion.id).in_(list(task_record_ids)))
                .where(ChoreCompletion.status == ChoreStatus.APPROVED)
            )
            titles: Dict[int, str] = {
                completion_id: (title or UNTITLED_CHORE) for completion_id, title in session.exec(statement).all()
            }

        return [titles[record_id] for record_id in task_record_ids if record_id in titles]

    def get_max_chapter_number(self, child_id: int, world_theme: str) -> int:
        with Session(self.engine) as session:
            statement = (
                select(func.max(Chapter.chapter_number))
                .where(Chapter.child_id == child_id)
                .where(Chapter.world_theme == world_theme)
            )
            return session.exec(statement).one() or 0

    def get_chapter_body(self, child_id: int, world_theme: str, chapter_number: int) -> Optional[str]:
        with Session(self.engine) as session:
            statement = (
                select(Chapter.content)
                .where(Chapter.child_id == child_id)
                .where(Chapter.world_theme == world_theme)
                .where(Chapter.chapter_number == chapter_number)
            )
            return session.exec(statement).first()

    def create_chapter(self, chapter: Chapter) -> Chapter:
        with Session(self.engine) as session:
            session.add(chapter)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ChapterNumberConflict(chapter.child_id, chapter.world_theme, chapter.chapter_number) from exc
            session.refresh(chapter)
            return chapter

    def upsert_progress(self, child_id: int, world_theme: str, chapter_number: int) -> None:
        with Session(self.engine) as session:
            progress = session.exec(
                select(StoryProgress)
                .where(StoryProgress.child_id == child_id)
                .where(StoryProgress.world_theme == world_theme)
            ).first()

            if progress is None:
                progress = StoryProgress(
                    child_id=child_id,
                    world_theme=world_theme,
                    current_chapter=chapter_number,
                    total_chapters_unlocked=chapter_number,
                )
            else:
                # Counters never move backwards
                progress.current_chapter = max(progress.current_chapter, chapter_number)
                progress.total_chapters_unlocked = max(progress.total_chapters_unlocked, chapter_number)

            progress.updated_at = utcnow()
            session.add(progress)
            session.commit()

    def mark_chapter_read(self, chapter_id: int) -> Optional[Chapter]:
        with Session(self.engine) as session:
            chapter = session.get(Chapter, chapter_id)
            if chapter is None:
                return None

            chapter.is_read = True
            session.add(chapter)

            progress = session.exec(
                select(StoryProgress)
                .where(StoryProgress.child_id == chapter.child_id)
                .where(StoryProgress.world_theme == chapter.world_theme)
            ).first()
            if progress is not None:
                progress.last_chapter_read = max(progress.last_chapter_read or 0, chapter.chapter_number)
                progress.updated_at = utcnow()
                session.add(progress)

            session.commit()
            session.refresh(chapter)
            return chapter

    def list_chapters(self, child_id: int, world_theme: str) -> List[Chapter]:
        with Session(self.engine) as session:
            statement = (
                select(Chapter)
                .where(Chapter.child_id == child_id)
                .where(Chapter.world_theme == world_theme)
                .order_by(Chapter.chapter_number)
            )
            return list(session.exec(statement).all())
