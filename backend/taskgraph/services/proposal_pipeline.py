"""Four-stage pipeline that turns a free-text request into a task proposal.

Stages run in a fixed order with no branching:

1. draft            - placeholder proposal for the raw request
2. inject_context   - related history, proven steps and known risks
3. personalize      - user profile notes and history-based time estimate
4. structure        - numbered steps and de-duplicated risks

Every stage returns a new ``TaskProposal``; nothing is persisted.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from taskgraph.observability.tracing import trace
from taskgraph.schemas.proposal import TaskProposal
from taskgraph.schemas.task import TaskRecord, UserProfile
from taskgraph.services.history_miner import HistoryMiner, describe_learnings
from taskgraph.services.similarity_index import SimilarityIndex

logger = logging.getLogger(__name__)

DRAFT_STEPS = ["Initial step 1", "Initial step 2"]
DRAFT_ESTIMATED_TIME = "To be determined"
DRAFT_RISKS = ["Unknown risks"]
HISTORY_BASED_ESTIMATE = "1 hour (based on similar completed tasks)"


class ProposalPipeline:
    def __init__(
        self,
        similarity_index: Optional[SimilarityIndex] = None,
        history_miner: Optional[HistoryMiner] = None,
    ) -> None:
        self.similarity_index = similarity_index or SimilarityIndex()
        self.history_miner = history_miner or HistoryMiner()

    def generate(
        self,
        text: str,
        corpus: Sequence[TaskRecord],
        user_profile: Optional[UserProfile] = None,
    ) -> TaskProposal:
        """Run all four stages for ``text`` against a snapshot of historical tasks."""
        logger.info("Generating proposal for: %s", text)
        with trace("proposal.generate", metadata={"corpus_size": len(corpus)}):
            draft = self.draft(text)
            enriched = self.inject_context(draft, corpus)
            personalized = self.personalize(enriched, user_profile, corpus)
            result = self.structure(personalized)
        logger.info(
            "Generated proposal with %d steps, %d risks, %d references",
            len(result.steps),
            len(result.risks),
            len(result.history_references),
        )
        return result

    def draft(self, text: str) -> TaskProposal:
        return TaskProposal(
            summary=text,
            steps=list(DRAFT_STEPS),
            estimated_time=DRAFT_ESTIMATED_TIME,
            risks=list(DRAFT_RISKS),
            history_references=[],
            user_adaptation="",
        )

    def inject_context(self, draft: TaskProposal, corpus: Sequence[TaskRecord]) -> TaskProposal:
        related = self.similarity_index.find_related(draft.summary, corpus)
        logger.info("Found %d related tasks", len(related))
        learnings = self.history_miner.extract_learnings(related)

        steps = list(draft.steps)
        for candidate in [*learnings.successful_patterns, *learnings.common_steps]:
            if not _contains_step(steps, candidate):
                steps.append(candidate)

        return draft.model_copy(
            update={
                "steps": steps,
                "risks": [*draft.risks, *learnings.potential_risks],
                "history_references": [record.id for record in related],
                "user_adaptation": _join_paragraphs(draft.user_adaptation, describe_learnings(learnings)),
            }
        )

    def personalize(
        self,
        enriched: TaskProposal,
        user_profile: Optional[UserProfile],
        corpus: Sequence[TaskRecord] = (),
    ) -> TaskProposal:
        notes: List[str] = []
        if user_profile and user_profile.interests:
            notes.append(f"Aligned with your interests in {', '.join(user_profile.interests)}.")
        if user_profile and user_profile.goals:
            notes.append(f"Supports your goals of {', '.join(user_profile.goals)}.")

        estimated_time = enriched.estimated_time
        summary = enriched.summary.strip().lower()
        if summary and any(record.status == "completed" and summary in record.title.lower() for record in corpus):
            # TODO: average completed_at deltas once the task store records start times.
            estimated_time = HISTORY_BASED_ESTIMATE

        return enriched.model_copy(
            update={
                "estimated_time": estimated_time,
                "user_adaptation": _join_paragraphs(enriched.user_adaptation, " ".join(notes)),
            }
        )

    def structure(self, personalized: TaskProposal) -> TaskProposal:
        steps = [
            step if step.startswith(f"{index}.") else f"{index}. {step}"
            for index, step in enumerate(personalized.steps, start=1)
        ]
        return personalized.model_copy(
            update={"steps": steps, "risks": list(dict.fromkeys(personalized.risks))}
        )


def _contains_step(steps: List[str], candidate: str) -> bool:
    lowered = candidate.lower()
    return any(lowered in step.lower() for step in steps)


def _join_paragraphs(*parts: str) -> str:
    return "\n\n".join(part for part in parts if part)
