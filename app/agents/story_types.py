from dataclasses import dataclass, field
from typing import List, Optional

from app.db.models import Chapter

@dataclass
class ChildProfile:
    child_id: int
    name: str
    age_bracket: str
    world_theme: str

@dataclass
class GenerationRequest:
    """Backend-agnostic description of the chapter to write."""
    child_id: int
    child_name: str
    age_bracket: str
    world_theme: str
    chapter_number: int
    completed_tasks: List[str] = field(default_factory=list)
    continuity_tail: Optional[str] = None

    # Derived guidance, filled by prompt_builder.build_request
    is_continuation: bool = False
    is_evening: bool = False
    world_description: str = ""
    age_guidance: str = ""
    length_guidance: str = ""
    task_framing: str = ""

@dataclass
class GenerationResult:
    success: bool
    chapter: Optional[Chapter] = None
    error_message: Optional[str] = None
    fallback_used: bool = False
    backend: Optional[str] = None
