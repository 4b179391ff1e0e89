"""Embedding provider interface."""
from __future__ import annotations

from typing import List


class EmbeddingUnavailableError(RuntimeError):
    """The embedding backend could not produce a vector for this call."""


class EmbeddingProvider:
    """Base interface for text embedding providers.

    ``embed`` returns an empty list when there is nothing to embed; callers
    treat an empty vector as "no embedding available".
    """

    def embed(self, text: str) -> List[float]:
        raise NotImplementedError
