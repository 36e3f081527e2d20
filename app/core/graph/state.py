from typing import TypedDict, List, Optional

from app.agents.story_types import ChildProfile, GenerationRequest, GenerationResult
from app.db.models import Chapter

class UnlockState(TypedDict, total=False):
    # Inputs
    child_id: int
    task_record_ids: List[int]
    allow_empty_tasks: bool  # continuation-only trigger

    # Resolution
    profile: Optional[ChildProfile]
    task_titles: List[str]

    # Numbering & continuity
    chapter_number: int
    continuity_tail: Optional[str]

    # Generation
    request: Optional[GenerationRequest]
    result: Optional[GenerationResult]

    # Output
    chapter: Optional[Chapter]
    persisted: bool
    replan: bool  # slot was taken, plan the chapter again
    conflicts: int
    progress_committed: bool
    notified: bool

    # Errors
    error: Optional[str]
