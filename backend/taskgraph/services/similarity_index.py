"""Rank historical task records by semantic similarity to a query."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from taskgraph.observability.metrics import log_metric
from taskgraph.schemas.task import TaskRecord
from taskgraph.services.category import DEFAULT_CATEGORY, detect_category
from taskgraph.services.embeddings.base import EmbeddingProvider
from taskgraph.services.embeddings.factory import get_embedding_provider

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.7
MIN_RELATED_RESULTS = 3
MIN_KEYWORD_LENGTH = 4


@dataclass(frozen=True)
class RankedRecord:
    record: TaskRecord
    similarity: float


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0 for mismatched or zero vectors."""
    if len(vec1) != len(vec2):
        logger.debug("Vector length mismatch: %d vs %d", len(vec1), len(vec2))
        return 0.0

    dot_product = 0.0
    mag1 = 0.0
    mag2 = 0.0
    for a, b in zip(vec1, vec2):
        dot_product += a * b
        mag1 += a * a
        mag2 += b * b

    mag1 = math.sqrt(mag1)
    mag2 = math.sqrt(mag2)
    if mag1 == 0 or mag2 == 0:
        return 0.0
    return max(-1.0, min(1.0, dot_product / (mag1 * mag2)))


class SimilarityIndex:
    """Vector search over a caller-supplied corpus with keyword fallback."""

    def __init__(
        self,
        embedding_provider: Optional[EmbeddingProvider] = None,
        *,
        threshold: float = SIMILARITY_THRESHOLD,
        min_results: int = MIN_RELATED_RESULTS,
    ) -> None:
        self.embedding_provider = embedding_provider or get_embedding_provider()
        self.threshold = threshold
        self.min_results = min_results

    def find_related(self, query_text: str, corpus: Sequence[TaskRecord]) -> List[TaskRecord]:
        query_vector = self.embedding_provider.embed(query_text)
        if not query_vector:
            logger.warning("No embedding for query, falling back to keyword search")
            log_metric("similarity.keyword_fallback.used", 1, {"reason": "empty_query_embedding"})
            return self.find_related_by_keywords(query_text, corpus)

        ranked = self.rank(query_vector, corpus)
        logger.debug("Found %d of %d records with comparable embeddings", len(ranked), len(corpus))

        if len(ranked) < self.min_results:
            log_metric("similarity.keyword_fallback.used", 1, {"reason": "sparse_embeddings"})
            return self._supplement(query_text, corpus, [item.record for item in ranked])

        if ranked:
            logger.debug(
                "Top similarity scores: %s",
                ", ".join(f"{item.record.title[:20]}: {item.similarity:.4f}" for item in ranked[:3]),
            )

        selected = [item.record for item in ranked if item.similarity > self.threshold]
        if len(selected) < self.min_results:
            chosen_ids = {record.id for record in selected}
            padding = [item.record for item in ranked if item.record.id not in chosen_ids]
            selected.extend(padding[: self.min_results - len(selected)])
        return selected

    def rank(self, query_vector: Sequence[float], corpus: Iterable[TaskRecord]) -> List[RankedRecord]:
        """Score records whose embedding matches the query's dimension, best first.

        ``sorted`` is stable, so equal scores keep their corpus order.
        """
        scored = [
            RankedRecord(record=record, similarity=cosine_similarity(query_vector, record.embedding))
            for record in corpus
            if record.embedding and len(record.embedding) == len(query_vector)
        ]
        return sorted(scored, key=lambda item: item.similarity, reverse=True)

    def find_related_by_keywords(self, query_text: str, corpus: Sequence[TaskRecord]) -> List[TaskRecord]:
        lowered = query_text.lower()
        keywords = [word for word in lowered.split() if len(word) >= MIN_KEYWORD_LENGTH]
        query_category = detect_category(query_text)
        logger.debug("Keyword search for: %s (category=%s)", ", ".join(keywords), query_category)

        by_title = [
            record for record in corpus if any(keyword in record.title.lower() for keyword in keywords)
        ]
        by_description = [
            record
            for record in corpus
            if record.description and any(keyword in record.description.lower() for keyword in keywords)
        ]
        by_category = []
        if query_category != DEFAULT_CATEGORY:
            by_category = [record for record in corpus if record.category == query_category]

        matches = _unique_by_id([*by_title, *by_description, *by_category])
        logger.debug("Found %d records via keyword search", len(matches))
        return matches

    def _supplement(
        self,
        query_text: str,
        corpus: Sequence[TaskRecord],
        ranked: List[TaskRecord],
    ) -> List[TaskRecord]:
        results = list(ranked)
        seen = {record.id for record in results}
        for candidate in [*self.find_related_by_keywords(query_text, corpus), *corpus]:
            if len(results) >= self.min_results:
                break
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            results.append(candidate)
        return results


def _unique_by_id(records: Iterable[TaskRecord]) -> List[TaskRecord]:
    seen: set[str] = set()
    unique: List[TaskRecord] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique
