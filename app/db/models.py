from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON, UniqueConstraint


def utcnow() -> datetime:
    # Timezone-aware UTC
    return datetime.now(timezone.utc)


# --- CHILD MODELS ---

class AgeBracket(str, Enum):
    YOUNG = "4-6"
    MIDDLE = "7-8"
    OLDER = "9-10"

class WorldTheme(str, Enum):
    MAGICAL_FOREST = "magical_forest"
    SPACE_ADVENTURE = "space_adventure"
    UNDERWATER_KINGDOM = "underwater_kingdom"

class Child(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    age: Optional[int] = Field(default=None)
    age_bracket: str = Field(default=AgeBracket.MIDDLE.value)
    world_theme: str = Field(default=WorldTheme.MAGICAL_FOREST.value)
    created_at: datetime = Field(default_factory=utcnow)

    # Relationship: One Child has many Chapters
    chapters: List["Chapter"] = Relationship(back_populates="child")

# --- CHORE MODELS (owned by the task collaborator, read-only here) ---

class ChoreStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Chore(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = Field(default=None)

class ChoreCompletion(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    chore_id: int = Field(foreign_key="chore.id")
    child_id: int = Field(foreign_key="child.id", index=True)
    status: ChoreStatus = Field(default=ChoreStatus.PENDING)
    created_at: datetime = Field(default_factory=utcnow)

# --- STORY MODELS ---

class Chapter(SQLModel, table=True):
    # One slot per (child, theme, number): concurrent writers collide here
    # instead of silently duplicating a chapter number.
    __table_args__ = (
        UniqueConstraint("child_id", "world_theme", "chapter_number", name="uq_chapter_slot"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    # Foreign Key to Child
    child_id: int = Field(foreign_key="child.id", index=True)
    child: Optional[Child] = Relationship(back_populates="chapters")

    world_theme: str = Field(index=True)
    chapter_number: int
    title: str
    content: str

    # The only field that changes after creation
    is_read: bool = Field(default=False)

    # Telemetry: which backend wrote it, or "curated"
    generated_by: Optional[str] = Field(default=None)
    fallback_used: bool = Field(default=False)

    unlocked_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)

class ChapterRead(SQLModel):
    id: Optional[int] = None
    child_id: int
    world_theme: str
    chapter_number: int
    title: str
    content: str
    is_read: bool
    fallback_used: bool
    unlocked_at: datetime

class StoryProgress(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("child_id", "world_theme", name="uq_progress_child_theme"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    child_id: int = Field(foreign_key="child.id", index=True)
    world_theme: str

    # Cache for display/analytics. Numbering is always recomputed from Chapter rows.
    current_chapter: int = Field(default=0)
    total_chapters_unlocked: int = Field(default=0)
    last_chapter_read: Optional[int] = Field(default=None)
    updated_at: datetime = Field(default_factory=utcnow)

# --- NOTIFICATIONS ---

class NotificationType(str, Enum):
    STORY_UNLOCK = "story_unlock"

class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    type: NotificationType = Field(default=NotificationType.STORY_UNLOCK)
    title: str
    message: str
    data: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
