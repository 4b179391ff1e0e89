"""Embedding provider factory."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from taskgraph.core.config import Settings, settings as default_settings
from taskgraph.services.embeddings.base import EmbeddingProvider
from taskgraph.services.embeddings.fallback import DeterministicEmbeddingProvider
from taskgraph.services.embeddings.remote import RemoteEmbeddingProvider
from taskgraph.services.embeddings.resilient import ResilientEmbeddingProvider

logger = logging.getLogger(__name__)


def build_embedding_provider(config: Optional[Settings] = None) -> EmbeddingProvider:
    config = config or default_settings
    primary: Optional[EmbeddingProvider] = None
    if not config.embedding_enabled:
        logger.info("Remote embeddings disabled; using deterministic embeddings.")
    elif not config.embedding_api_key:
        logger.warning("EMBEDDING_API_KEY missing; using deterministic embeddings.")
    else:
        primary = RemoteEmbeddingProvider(
            model=config.embedding_model,
            api_key=config.embedding_api_key,
            base_url=config.embedding_base_url,
            timeout_seconds=config.embedding_timeout_seconds,
        )
    return ResilientEmbeddingProvider(primary=primary, fallback=DeterministicEmbeddingProvider())


@lru_cache
def get_embedding_provider() -> EmbeddingProvider:
    return build_embedding_provider()
