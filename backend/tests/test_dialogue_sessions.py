from __future__ import annotations

import pytest

from taskgraph.core.context import get_session_id
from taskgraph.observability import tracing
from taskgraph.services.dialogue_engine import DialogueEngine
from taskgraph.services.dialogue_sessions import DialogueSessionManager, SessionNotFoundError


class _RecordingEngine(DialogueEngine):
    def __init__(self, history=()):
        super().__init__(history)
        self.bound_ids: list[str | None] = []

    def start_interaction(self, title, history=None):
        self.bound_ids.append(get_session_id())
        return super().start_interaction(title, history)

    def submit_answer(self, question_id, option_id):
        self.bound_ids.append(get_session_id())
        return super().submit_answer(question_id, option_id)


def test_sessions_do_not_share_state() -> None:
    manager = DialogueSessionManager()
    first = manager.create_session()
    second = manager.create_session()

    manager.start(first, "Plan the trip")
    manager.answer(first, "general-priority", "cost")
    manager.start(second, "Study Spanish")

    assert manager.state(first).answers == {"general-priority": "cost"}
    assert manager.state(first).stage == "clarification"
    assert manager.state(second).answers == {}
    assert manager.state(second).stage == "initial"
    assert manager.state(second).questions[0].id == "learning-style"


def test_full_session_reaches_final_stage() -> None:
    manager = DialogueSessionManager()
    session_id = manager.create_session()

    state = manager.start(session_id, "Plan the trip")
    for question in state.questions:
        state = manager.answer(session_id, question.id, question.options[0].id)
    state = manager.select(session_id, state.suggestions[0].id)

    assert state.stage == "final"
    assert state.final_proposal is not None


def test_unknown_session_raises() -> None:
    manager = DialogueSessionManager()

    with pytest.raises(SessionNotFoundError):
        manager.start("missing", "Plan the trip")
    with pytest.raises(SessionNotFoundError):
        manager.state("missing")


def test_close_is_idempotent_and_forgets_session() -> None:
    manager = DialogueSessionManager()
    session_id = manager.create_session()

    manager.close(session_id)
    manager.close(session_id)

    assert manager.active_sessions() == []
    with pytest.raises(SessionNotFoundError):
        manager.get(session_id)


def test_reset_only_touches_one_session() -> None:
    manager = DialogueSessionManager()
    kept = manager.create_session()
    cleared = manager.create_session()
    manager.start(kept, "Plan the trip")
    manager.start(cleared, "Plan the trip")

    state = manager.reset(cleared)

    assert state.stage == "initial"
    assert state.questions == []
    assert len(manager.state(kept).questions) == 2


def test_session_id_is_bound_while_engine_runs() -> None:
    engines: list[_RecordingEngine] = []

    def factory(history):
        engine = _RecordingEngine(history)
        engines.append(engine)
        return engine

    manager = DialogueSessionManager(engine_factory=factory)
    session_id = manager.create_session()

    manager.start(session_id, "Plan the trip")
    manager.answer(session_id, "general-priority", "time")

    assert engines[0].bound_ids == [session_id, session_id]
    assert get_session_id() is None


def test_history_is_handed_to_engine_factory() -> None:
    received = []

    def factory(history):
        received.append(list(history))
        return DialogueEngine(history)

    manager = DialogueSessionManager(engine_factory=factory)
    manager.create_session(history=[])

    assert received == [[]]


class _DummyTrace:
    def __init__(self, name=None, metadata=None):
        self.name = name
        self.metadata = metadata or {}
        self.output = None
        self.ended = False

    def update(self, output=None, **kwargs):
        self.output = output

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self):
        self.traces = []

    def trace(self, name=None, metadata=None):
        trace = _DummyTrace(name, metadata)
        self.traces.append(trace)
        return trace


def test_dialogue_calls_are_traced_with_stage_transitions(monkeypatch) -> None:
    dummy = _DummyOpik()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)
    manager = DialogueSessionManager()
    session_id = manager.create_session()

    manager.start(session_id, "Plan the trip")
    manager.answer(session_id, "general-priority", "time")

    start_trace, answer_trace = dummy.traces
    assert start_trace.name == "dialogue.start"
    assert start_trace.metadata == {"title": "Plan the trip", "stage_before": "initial", "session_id": session_id}
    assert start_trace.output == {"stage": "initial", "answered": 0, "questions": 2}
    assert answer_trace.metadata["question_id"] == "general-priority"
    assert answer_trace.metadata["stage_before"] == "initial"
    assert answer_trace.output == {"stage": "clarification", "answered": 1, "questions": 2}
    assert all(trace.ended for trace in dummy.traces)
