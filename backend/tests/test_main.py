from __future__ import annotations

from taskgraph import main as main_module
from taskgraph.core.config import Settings
from taskgraph.observability import client as client_module
from taskgraph.schemas.task import Subtask, TaskRecord
from taskgraph.services.embeddings.fallback import DeterministicEmbeddingProvider, deterministic_embedding
from taskgraph.services.embeddings.resilient import ResilientEmbeddingProvider


def _quiet(monkeypatch) -> None:
    monkeypatch.setattr(main_module, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(main_module, "init_opik", lambda config=None: None)


def test_create_services_uses_config(monkeypatch) -> None:
    _quiet(monkeypatch)

    services = main_module.create_services(Settings(embedding_api_key=None, similarity_threshold=0.9))

    assert isinstance(services.embedding_provider, ResilientEmbeddingProvider)
    assert services.similarity_index.threshold == 0.9
    assert services.pipeline.similarity_index is services.similarity_index
    assert services.pipeline.history_miner is services.history_miner


def test_services_generate_proposal_and_run_dialogue(monkeypatch) -> None:
    _quiet(monkeypatch)
    services = main_module.create_services(Settings(), embedding_provider=DeterministicEmbeddingProvider())
    corpus = [
        TaskRecord(
            id="r1",
            title="Weekly project review",
            status="completed",
            subtasks=[Subtask(id="r1-1", title="Collect status updates", completed=True)],
            embedding=deterministic_embedding("Weekly project review"),
        )
    ]

    proposal = services.pipeline.generate("Weekly project review", corpus)
    session_id = services.sessions.create_session(corpus)
    state = services.sessions.start(session_id, "Weekly project review")

    assert proposal.history_references == ["r1"]
    assert "2. Initial step 2" in proposal.steps
    assert "3. Collect status updates" in proposal.steps
    assert state.questions[0].id == "work-priority"
    assert services.sessions.get(session_id).history_miner is services.history_miner


class _DummyOpik:
    created: list[dict] = []

    def __init__(self, **kwargs):
        _DummyOpik.created.append(kwargs)


def test_create_services_initializes_opik_from_given_settings(monkeypatch) -> None:
    monkeypatch.setattr(main_module, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    monkeypatch.setattr(_DummyOpik, "created", [])
    client_module.reset_opik_client()
    try:
        main_module.create_services(
            Settings(opik_enabled=True, opik_api_key="k", opik_project="planner-test"),
            embedding_provider=DeterministicEmbeddingProvider(),
        )

        assert _DummyOpik.created == [{"project_name": "planner-test", "api_key": "k"}]
        assert isinstance(client_module.get_opik_client(), _DummyOpik)
    finally:
        client_module.reset_opik_client()
