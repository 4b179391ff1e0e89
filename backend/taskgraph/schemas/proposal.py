"""Schemas for synthesized task proposals."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TaskProposal(BaseModel):
    """Structured plan for a free-text request. Frozen once produced."""

    model_config = ConfigDict(frozen=True)

    summary: str
    steps: List[str] = Field(default_factory=list)
    estimated_time: str = "To be determined"
    risks: List[str] = Field(default_factory=list)
    history_references: List[str] = Field(default_factory=list, description="Ids of related task records.")
    user_adaptation: str = ""
