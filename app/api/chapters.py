from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import SQLModel

from app.core.engine import GenerationEngine, build_engine
from app.core.exceptions import ProfileNotFoundError
from app.core.logger import get_logger
from app.db.models import ChapterRead

logger = get_logger("api.chapters")
router = APIRouter()


class UnlockRequest(SQLModel):
    child_id: int
    task_record_ids: List[int] = []

class UnlockResponse(SQLModel):
    unlocked: bool
    chapter: Optional[ChapterRead] = None


@lru_cache(maxsize=1)
def get_engine() -> GenerationEngine:
    return build_engine()


def _unlock_response(chapter) -> UnlockResponse:
    if chapter is None:
        return UnlockResponse(unlocked=False)
    return UnlockResponse(unlocked=True, chapter=ChapterRead.model_validate(chapter, from_attributes=True))


# Triggered by chore approval
@router.post("/chapters/unlock", response_model=UnlockResponse)
def unlock_chapter(body: UnlockRequest, engine: GenerationEngine = Depends(get_engine)):
    chapter = engine.unlock_chapter_for_completed_tasks(body.child_id, body.task_record_ids)
    return _unlock_response(chapter)


# "Request new chapter" button
@router.post("/children/{child_id}/chapters/next", response_model=UnlockResponse)
def next_chapter(child_id: int, engine: GenerationEngine = Depends(get_engine)):
    chapter = engine.continue_story(child_id)
    return _unlock_response(chapter)


@router.get("/children/{child_id}/chapters", response_model=List[ChapterRead])
def list_chapters(child_id: int, engine: GenerationEngine = Depends(get_engine)):
    try:
        return engine.list_chapters(child_id)
    except ProfileNotFoundError:
        raise HTTPException(status_code=404, detail="Child not found")


@router.post("/chapters/{chapter_id}/read", response_model=ChapterRead)
def mark_read(chapter_id: int, engine: GenerationEngine = Depends(get_engine)):
    chapter = engine.mark_chapter_read(chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail="Chapter not found")
    logger.info(f"Chapter {chapter.id} marked as read by child {chapter.child_id}")
    return chapter
