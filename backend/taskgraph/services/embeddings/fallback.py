"""Deterministic local embeddings used when the remote service is unavailable."""
from __future__ import annotations

import logging
import math
from typing import List

from taskgraph.services.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

EMBEDDING_DIMENSIONS = 128
LENGTH_NORMALIZER = 1000
KEYWORD_FEATURES = [
    "work",
    "project",
    "learn",
    "study",
    "health",
    "exercise",
    "deadline",
    "important",
    "urgent",
]
CHAR_BUCKET_OFFSET = 1 + len(KEYWORD_FEATURES)
CHAR_BUCKET_COUNT = EMBEDDING_DIMENSIONS - CHAR_BUCKET_OFFSET
CHAR_INCREMENT = 0.01


def deterministic_embedding(text: str) -> List[float]:
    """Build a unit-length 128-dim vector from length, keyword and character features.

    Text length and character codes are measured in UTF-16 code units so the
    same string always maps to the same vector, whatever produced it.
    """
    vector = [0.0] * EMBEDDING_DIMENSIONS
    code_units = _utf16_code_units(text)

    vector[0] = min(len(code_units) / LENGTH_NORMALIZER, 1)

    lowered = text.lower()
    for index, keyword in enumerate(KEYWORD_FEATURES):
        vector[index + 1] = 1.0 if keyword in lowered else 0.0

    for unit in code_units:
        position = unit % CHAR_BUCKET_COUNT + CHAR_BUCKET_OFFSET
        vector[position] = (vector[position] + CHAR_INCREMENT) % 1

    magnitude = math.sqrt(sum(value * value for value in vector))
    if magnitude > 0:
        vector = [value / magnitude for value in vector]
    return vector


def _utf16_code_units(text: str) -> List[int]:
    raw = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(raw[i : i + 2], "little") for i in range(0, len(raw), 2)]


class DeterministicEmbeddingProvider(EmbeddingProvider):
    def embed(self, text: str) -> List[float]:
        logger.debug("Generating deterministic embedding (%d chars)", len(text))
        return deterministic_embedding(text)
