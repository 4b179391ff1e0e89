from __future__ import annotations

from taskgraph.schemas.task import FeedbackEntry, Subtask, TaskPreferences, TaskRecord
from taskgraph.services.history_miner import (
    HistoricalLearnings,
    HistoryMiner,
    describe_learnings,
    extract_risk,
)

TIMESTAMP = "2025-03-01T09:00:00Z"


def _record(record_id: str, *, status: str = "completed", subtasks=None, feedback=None, preferences=None) -> TaskRecord:
    return TaskRecord(
        id=record_id,
        title=f"Task {record_id}",
        status=status,
        subtasks=[
            Subtask(id=f"{record_id}-{i}", title=title, completed=done)
            for i, (title, done) in enumerate(subtasks or [])
        ],
        feedback=[FeedbackEntry(text=text, timestamp=TIMESTAMP) for text in feedback or []],
        preferences=preferences,
    )


def test_problem_with_phrase_becomes_risk() -> None:
    record = _record("a", feedback=["There was a problem with scheduling conflicts"])

    learnings = HistoryMiner().extract_learnings([record])

    assert "Risk: scheduling conflicts" in learnings.potential_risks


def test_risk_phrases_are_tried_in_order() -> None:
    assert extract_risk("Real difficulty with the API, and a risk of delays") == "Risk: the api"
    assert extract_risk("A challenge in testing. Also a concern about cost") == "Risk: testing"
    assert extract_risk("Some concern about budget!") == "Risk: budget"
    assert extract_risk("The risk of burnout is high") == "Risk: burnout is high"


def test_unstructured_risky_feedback_is_kept_verbatim() -> None:
    assert extract_risk("This was Difficult overall") == "Feedback: This was Difficult overall"


def test_neutral_feedback_is_ignored() -> None:
    record = _record("a", feedback=["Went smoothly", "Loved it"])

    assert HistoryMiner().extract_learnings([record]).potential_risks == []


def test_repeated_completed_steps_become_common_steps() -> None:
    records = [
        _record("a", subtasks=[("Warm up 5 minutes", True), ("Run 3km", True)]),
        _record("b", subtasks=[("Warm up 5 minutes", True), ("Stretch", False)]),
    ]

    learnings = HistoryMiner().extract_learnings(records)

    assert learnings.successful_patterns == ["Warm up 5 minutes", "Run 3km"]
    assert learnings.common_steps == ["Warm up 5 minutes"]


def test_patterns_are_deduplicated_by_substring() -> None:
    records = [
        _record("a", subtasks=[("Draft outline", True), ("draft OUTLINE for chapter 2", True)]),
        _record("b", subtasks=[("Outline", True)]),
    ]

    learnings = HistoryMiner().extract_learnings(records)

    assert learnings.successful_patterns == ["Draft outline"]


def test_only_completed_subtasks_of_completed_records_count() -> None:
    records = [
        _record("pending", status="pending", subtasks=[("Book venue", True)]),
        _record("done", subtasks=[("Send invites", False)]),
    ]

    learnings = HistoryMiner().extract_learnings(records)

    assert learnings.successful_patterns == []
    assert learnings.common_steps == []


def test_later_defined_preferences_override_earlier_ones() -> None:
    records = [
        _record("a", preferences=TaskPreferences(preferred_time_of_day="morning", preferred_approach="pomodoro")),
        _record("b", status="pending", preferences=TaskPreferences(preferred_time_of_day="evening")),
        _record("c", preferences=TaskPreferences(preferred_approach=None, difficulty_rating=3)),
    ]

    preferences = HistoryMiner().extract_learnings(records).user_preferences

    assert preferences == {
        "preferred_time_of_day": "evening",
        "preferred_approach": "pomodoro",
        "difficulty_rating": 3,
    }


def test_feedback_patterns_flag_each_theme() -> None:
    records = [
        _record("a", feedback=["Had to rush at the end"]),
        _record("b", feedback=["My knee pain came back"]),
    ]

    patterns = HistoryMiner().detect_feedback_patterns(records)

    assert patterns.time_issues is True
    assert patterns.health_issues is True
    assert patterns.difficulty_issues is False
    assert patterns.quality_issues is False


def test_describe_learnings_summarizes_counts_and_preferences() -> None:
    learnings = HistoricalLearnings(
        successful_patterns=["Warm up", "Cool down"],
        potential_risks=["Risk: rain"],
        user_preferences={"preferred_time_of_day": "morning", "preferred_environment": ["park", "gym"]},
    )

    text = describe_learnings(learnings)

    assert text.startswith("Historical insights: ")
    assert "2 proven steps" in text
    assert "1 known challenges" in text
    assert "preferred time: morning; preferred environment: park, gym" in text


def test_describe_learnings_is_empty_without_history() -> None:
    assert describe_learnings(HistoricalLearnings()) == ""
