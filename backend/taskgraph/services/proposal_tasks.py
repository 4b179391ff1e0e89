"""Helpers for turning proposals into pending task records."""
from __future__ import annotations

from typing import Optional
from uuid import uuid4

from taskgraph.schemas.proposal import TaskProposal
from taskgraph.schemas.task import Subtask, TaskRecord
from taskgraph.services.category import detect_category


def task_from_proposal(proposal: TaskProposal, task_id: Optional[str] = None) -> TaskRecord:
    task_id = task_id or f"task-{uuid4().hex}"
    subtasks = [
        Subtask(id=f"{task_id}-subtask-{index}", title=step, completed=False)
        for index, step in enumerate(proposal.steps, start=1)
    ]
    return TaskRecord(
        id=task_id,
        title=proposal.summary,
        description=proposal_description(proposal),
        status="pending",
        subtasks=subtasks,
        category=detect_category(proposal.summary),
        related_ids=list(proposal.history_references),
    )


def proposal_description(proposal: TaskProposal) -> str:
    challenges = "\n".join(proposal.risks)
    return (
        f"{proposal.user_adaptation}\n\n"
        f"Potential challenges:\n{challenges}\n\n"
        f"Estimated time: {proposal.estimated_time}"
    ).strip()
