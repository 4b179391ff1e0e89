"""Schemas for historical task records supplied by the task store."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TaskStatus = Literal["pending", "completed", "cancelled"]
TaskPriority = Literal["low", "medium", "high"]
Category = Literal["work", "learning", "health", "other"]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]


class Subtask(BaseModel):
    id: str
    title: str
    completed: bool = False


class FeedbackEntry(BaseModel):
    text: str
    timestamp: str


class TaskPreferences(BaseModel):
    """Per-task preferences; ``None`` means the user never stated one."""

    preferred_time_of_day: Optional[TimeOfDay] = None
    preferred_environment: Optional[List[str]] = None
    preferred_duration: Optional[int] = Field(default=None, ge=0, description="Minutes.")
    preferred_approach: Optional[str] = None
    difficulty_rating: Optional[int] = Field(default=None, ge=1, le=5)


class TaskRecord(BaseModel):
    """Historical task as stored by the external task store (read-only here)."""

    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    important: bool = False
    due_date: Optional[str] = None
    completed_at: Optional[str] = None
    subtasks: List[Subtask] = Field(default_factory=list)
    feedback: List[FeedbackEntry] = Field(default_factory=list)
    embedding: List[float] = Field(default_factory=list, description="Empty when no embedding exists.")
    category: Optional[Category] = None
    related_ids: List[str] = Field(default_factory=list)
    preferences: Optional[TaskPreferences] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class UserProfile(BaseModel):
    interests: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    personality: List[str] = Field(default_factory=list)
    hobbies: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
