"""Registry of dialogue sessions, one engine per session id."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from taskgraph.core.context import bind_session_id
from taskgraph.observability.tracing import trace
from taskgraph.schemas.dialogue import DialogueState
from taskgraph.schemas.task import TaskRecord
from taskgraph.services.dialogue_engine import DialogueEngine
from taskgraph.services.history_miner import HistoryMiner

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a session id is unknown or already closed."""


class DialogueSessionManager:
    """Owns the ``session_id -> DialogueEngine`` map for a host application."""

    def __init__(self, engine_factory: Optional[Callable[[Sequence[TaskRecord]], DialogueEngine]] = None) -> None:
        self._engine_factory = engine_factory or _default_engine_factory
        self._sessions: Dict[str, DialogueEngine] = {}
        self._lock = Lock()

    def create_session(self, history: Sequence[TaskRecord] = ()) -> str:
        session_id = uuid4().hex
        engine = self._engine_factory(history)
        with self._lock:
            self._sessions[session_id] = engine
        with bind_session_id(session_id):
            logger.info("Dialogue session created (history=%d)", len(history))
        return session_id

    def get(self, session_id: str) -> DialogueEngine:
        with self._lock:
            engine = self._sessions.get(session_id)
        if engine is None:
            raise SessionNotFoundError(session_id)
        return engine

    def start(self, session_id: str, title: str) -> DialogueState:
        engine = self.get(session_id)
        return self._run(
            session_id, engine, "dialogue.start", {"title": title}, lambda: engine.start_interaction(title)
        )

    def answer(self, session_id: str, question_id: str, option_id: str) -> DialogueState:
        engine = self.get(session_id)
        metadata = {"question_id": question_id, "option_id": option_id}
        return self._run(
            session_id, engine, "dialogue.answer", metadata, lambda: engine.submit_answer(question_id, option_id)
        )

    def select(self, session_id: str, suggestion_id: str) -> DialogueState:
        engine = self.get(session_id)
        metadata = {"suggestion_id": suggestion_id}
        return self._run(
            session_id, engine, "dialogue.select", metadata, lambda: engine.select_suggestion(suggestion_id)
        )

    def state(self, session_id: str) -> DialogueState:
        return self.get(session_id).get_state()

    def reset(self, session_id: str) -> DialogueState:
        engine = self.get(session_id)
        with bind_session_id(session_id):
            logger.info("Dialogue session reset")
            return engine.reset()

    def close(self, session_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            with bind_session_id(session_id):
                logger.info("Dialogue session closed")

    def active_sessions(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def _run(
        self,
        session_id: str,
        engine: DialogueEngine,
        name: str,
        metadata: Dict[str, Any],
        call: Callable[[], DialogueState],
    ) -> DialogueState:
        stage_before = engine.get_state().stage
        trace_metadata = {**metadata, "stage_before": stage_before}
        with bind_session_id(session_id), trace(name, metadata=trace_metadata) as opik_trace:
            state = call()
            if opik_trace:
                opik_trace.update(
                    output={
                        "stage": state.stage,
                        "answered": len(state.answers),
                        "questions": len(state.questions),
                    }
                )
        return state


def _default_engine_factory(history: Sequence[TaskRecord]) -> DialogueEngine:
    return DialogueEngine(history=history, history_miner=HistoryMiner())
