"""Remote-first embedding provider with a deterministic fallback."""
from __future__ import annotations

import logging
from typing import List, Optional

from taskgraph.observability.metrics import log_metric
from taskgraph.services.embeddings.base import EmbeddingProvider, EmbeddingUnavailableError
from taskgraph.services.embeddings.fallback import DeterministicEmbeddingProvider

logger = logging.getLogger(__name__)


class ResilientEmbeddingProvider(EmbeddingProvider):
    """Try ``primary`` once and fall back on any ``EmbeddingUnavailableError``.

    The fallback path is never reported to callers as an error. Blank input is
    "no embedding" and short-circuits both providers.
    """

    def __init__(
        self,
        primary: Optional[EmbeddingProvider] = None,
        fallback: Optional[EmbeddingProvider] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or DeterministicEmbeddingProvider()

    def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            logger.warning("Empty text provided for embedding generation")
            return []

        if self.primary is None:
            return self.fallback.embed(text)

        try:
            return self.primary.embed(text)
        except EmbeddingUnavailableError as exc:
            logger.warning("Remote embedding unavailable, falling back to deterministic vector: %s", exc)
            log_metric("embedding.fallback.used", 1, {"reason": type(exc.__cause__ or exc).__name__})
            return self.fallback.embed(text)
