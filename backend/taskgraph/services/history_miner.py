"""Heuristics for mining success patterns and risks from historical tasks."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from taskgraph.schemas.task import TaskRecord

logger = logging.getLogger(__name__)

RISK_TRIGGER_WORDS = ["difficult", "challenge", "problem", "issue", "risk", "concern", "worry"]

# Tried in order; the first match wins.
RISK_PHRASES = [
    re.compile(r"difficult(?:y|ies)?\s+with\s+(?P<subject>[^.,:;!?]+)", re.IGNORECASE),
    re.compile(r"problem\s+with\s+(?P<subject>[^.,:;!?]+)", re.IGNORECASE),
    re.compile(r"challenge\s+in\s+(?P<subject>[^.,:;!?]+)", re.IGNORECASE),
    re.compile(r"risk\s+of\s+(?P<subject>[^.,:;!?]+)", re.IGNORECASE),
    re.compile(r"concern\s+about\s+(?P<subject>[^.,:;!?]+)", re.IGNORECASE),
]

FEEDBACK_PATTERN_KEYWORDS = {
    "time_issues": ["time", "deadline", "late", "rush"],
    "difficulty_issues": ["difficult", "hard", "challenge", "struggle"],
    "quality_issues": ["quality", "better", "improve", "not good"],
    "health_issues": ["pain", "injury", "tired", "exhausted"],
}


@dataclass
class HistoricalLearnings:
    successful_patterns: List[str] = field(default_factory=list)
    common_steps: List[str] = field(default_factory=list)
    potential_risks: List[str] = field(default_factory=list)
    user_preferences: Dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.successful_patterns or self.potential_risks or self.user_preferences)


@dataclass
class FeedbackPatterns:
    time_issues: bool = False
    difficulty_issues: bool = False
    quality_issues: bool = False
    health_issues: bool = False


class HistoryMiner:
    """Extract reusable learnings from a snapshot of related task records."""

    def extract_learnings(self, records: Sequence[TaskRecord]) -> HistoricalLearnings:
        learnings = HistoricalLearnings()
        step_frequency: Dict[str, int] = {}

        for record in records:
            if record.status == "completed":
                for subtask in record.subtasks:
                    if not subtask.completed:
                        continue
                    normalized = subtask.title.lower()
                    step_frequency[normalized] = step_frequency.get(normalized, 0) + 1
                    if _find_overlapping(learnings.successful_patterns, normalized) is None:
                        learnings.successful_patterns.append(subtask.title)

            if record.preferences is not None:
                for key, value in record.preferences.model_dump().items():
                    if value is not None:
                        learnings.user_preferences[key] = value

            for entry in record.feedback:
                risk = extract_risk(entry.text)
                if risk:
                    learnings.potential_risks.append(risk)

        for step, frequency in step_frequency.items():
            if frequency <= 1:
                continue
            original = _find_overlapping(learnings.successful_patterns, step)
            if original and original not in learnings.common_steps:
                learnings.common_steps.append(original)

        logger.info(
            "Extracted %d patterns, %d common steps, %d risks",
            len(learnings.successful_patterns),
            len(learnings.common_steps),
            len(learnings.potential_risks),
        )
        return learnings

    def detect_feedback_patterns(self, records: Iterable[TaskRecord]) -> FeedbackPatterns:
        patterns = FeedbackPatterns()
        for record in records:
            for entry in record.feedback:
                lowered = entry.text.lower()
                for flag, keywords in FEEDBACK_PATTERN_KEYWORDS.items():
                    if any(keyword in lowered for keyword in keywords):
                        setattr(patterns, flag, True)
        return patterns


def extract_risk(feedback_text: str) -> Optional[str]:
    """Turn a risk-flavoured feedback entry into a ``Risk:``/``Feedback:`` line."""
    lowered = feedback_text.lower()
    if not any(word in lowered for word in RISK_TRIGGER_WORDS):
        return None
    for pattern in RISK_PHRASES:
        match = pattern.search(lowered)
        if match and match.group("subject").strip():
            return f"Risk: {match.group('subject').strip()}"
    return f"Feedback: {feedback_text}"


def describe_learnings(learnings: HistoricalLearnings) -> str:
    if learnings.is_empty():
        return ""

    insights = "Historical insights: "
    if learnings.successful_patterns:
        insights += (
            f"Previously successful approaches incorporated {len(learnings.successful_patterns)} proven steps. "
        )
    if learnings.potential_risks:
        insights += f"Be aware of {len(learnings.potential_risks)} known challenges from similar tasks. "

    preferences = learnings.user_preferences
    pref_strings: List[str] = []
    if preferences.get("preferred_time_of_day"):
        pref_strings.append(f"preferred time: {preferences['preferred_time_of_day']}")
    if preferences.get("preferred_environment"):
        pref_strings.append(f"preferred environment: {', '.join(preferences['preferred_environment'])}")
    if preferences.get("preferred_approach"):
        pref_strings.append(f"preferred approach: {preferences['preferred_approach']}")
    if pref_strings:
        insights += f"Adapted to your preferences ({'; '.join(pref_strings)})."
    return insights.strip()


def _find_overlapping(patterns: List[str], normalized_step: str) -> Optional[str]:
    for pattern in patterns:
        lowered = pattern.lower()
        if normalized_step in lowered or lowered in normalized_step:
            return pattern
    return None
