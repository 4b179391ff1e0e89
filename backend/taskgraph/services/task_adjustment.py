"""Feedback-driven task adjustments.

The helpers here only compute what should change; applying a
``TaskAdjustment`` to the task store is left to the caller.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from taskgraph.schemas.proposal import TaskProposal
from taskgraph.schemas.task import Subtask, TaskPriority, TaskRecord, TaskStatus

logger = logging.getLogger(__name__)

HIGH_PRIORITY_HINTS = ("urgent", "important")
LOW_PRIORITY_HINTS = ("less important", "lower priority")
COMPLETION_HINTS = ("completed", "done")
CANCEL_HINT = "cancel"
NEW_SUBTASK_PATTERN = re.compile(r"add (?:step|subtask):?\s*(?P<title>.+)$", re.IGNORECASE)


@dataclass
class TaskAdjustment:
    priority: Optional[TaskPriority] = None
    important: Optional[bool] = None
    due_date: Optional[str] = None
    status: Optional[TaskStatus] = None
    completed_at: Optional[str] = None
    subtasks: Optional[List[Subtask]] = None

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "priority": self.priority,
            "important": self.important,
            "due_date": self.due_date,
            "status": self.status,
            "completed_at": self.completed_at,
            "subtasks": [subtask.model_dump() for subtask in self.subtasks] if self.subtasks is not None else None,
        }
        return {key: value for key, value in payload.items() if value is not None}


def derive_adjustments(record: TaskRecord, feedback: str, now: Optional[datetime] = None) -> TaskAdjustment:
    now = now or datetime.now(timezone.utc)
    lowered = feedback.lower()
    adjustment = TaskAdjustment()

    # "less important" also contains "important", so the high-priority rule wins.
    if any(hint in lowered for hint in HIGH_PRIORITY_HINTS):
        adjustment.priority = "high"
        adjustment.important = True
    elif any(hint in lowered for hint in LOW_PRIORITY_HINTS):
        adjustment.priority = "low"

    if "tomorrow" in lowered:
        adjustment.due_date = (now + timedelta(days=1)).isoformat()
    elif "next week" in lowered:
        adjustment.due_date = (now + timedelta(days=7)).isoformat()

    if any(hint in lowered for hint in COMPLETION_HINTS):
        adjustment.status = "completed"
        adjustment.completed_at = now.isoformat()
    elif CANCEL_HINT in lowered:
        adjustment.status = "cancelled"

    match = NEW_SUBTASK_PATTERN.search(feedback)
    if match and match.group("title").strip():
        new_subtask = Subtask(
            id=f"{record.id}-subtask-{len(record.subtasks) + 1}",
            title=match.group("title").strip(),
            completed=False,
        )
        adjustment.subtasks = [*record.subtasks, new_subtask]

    logger.info("Derived adjustments for task %s: %s", record.id, adjustment.to_dict())
    return adjustment


def derive_state_update(record: TaskRecord, now: Optional[datetime] = None) -> TaskAdjustment:
    adjustment = TaskAdjustment()
    if record.subtasks and all(subtask.completed for subtask in record.subtasks):
        adjustment.status = "completed"
        adjustment.completed_at = (now or datetime.now(timezone.utc)).isoformat()
    return adjustment


def revise_proposal(record: TaskRecord, feedback: str) -> TaskProposal:
    return TaskProposal(
        summary=record.title,
        steps=[subtask.title for subtask in record.subtasks],
        estimated_time="To be determined",
        risks=[],
        history_references=list(record.related_ids),
        user_adaptation=f"Revised based on feedback: {feedback}",
    )
