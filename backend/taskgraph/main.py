"""Composition root wiring the planner services for a host application."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from taskgraph.core.config import Settings, settings as default_settings
from taskgraph.core.logging import configure_logging
from taskgraph.observability.client import init_opik
from taskgraph.services.dialogue_engine import DialogueEngine
from taskgraph.services.dialogue_sessions import DialogueSessionManager
from taskgraph.services.embeddings.base import EmbeddingProvider
from taskgraph.services.embeddings.factory import build_embedding_provider
from taskgraph.services.history_miner import HistoryMiner
from taskgraph.services.proposal_pipeline import ProposalPipeline
from taskgraph.services.similarity_index import SimilarityIndex

logger = logging.getLogger(__name__)


@dataclass
class PlannerServices:
    embedding_provider: EmbeddingProvider
    similarity_index: SimilarityIndex
    history_miner: HistoryMiner
    pipeline: ProposalPipeline
    sessions: DialogueSessionManager


def create_services(
    config: Optional[Settings] = None,
    *,
    embedding_provider: Optional[EmbeddingProvider] = None,
) -> PlannerServices:
    """Build one independent set of planner services."""
    config = config or default_settings
    configure_logging(log_level=config.log_level)
    init_opik(config)

    provider = embedding_provider or build_embedding_provider(config)
    index = SimilarityIndex(
        provider,
        threshold=config.similarity_threshold,
        min_results=config.related_min_results,
    )
    miner = HistoryMiner()
    sessions = DialogueSessionManager(
        engine_factory=lambda history: DialogueEngine(history=history, history_miner=miner)
    )
    logger.info("%s services ready (embedding provider=%s)", config.app_name, type(provider).__name__)
    return PlannerServices(
        embedding_provider=provider,
        similarity_index=index,
        history_miner=miner,
        pipeline=ProposalPipeline(index, miner),
        sessions=sessions,
    )
