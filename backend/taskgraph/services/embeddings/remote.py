"""OpenAI-compatible remote embedding provider."""
from __future__ import annotations

import logging
import time
from typing import Any, List, Optional

import openai

from taskgraph.observability.tracing import trace
from taskgraph.services.embeddings.base import EmbeddingProvider, EmbeddingUnavailableError

logger = logging.getLogger(__name__)


class RemoteEmbeddingProvider(EmbeddingProvider):
    """Calls an ``/embeddings`` endpoint once per text, without retries.

    Every failure mode (non-2xx status, connection error, timeout or a response
    that does not carry a float vector) surfaces as ``EmbeddingUnavailableError``.
    """

    def __init__(
        self,
        *,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client: Any = None,
    ) -> None:
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._client = client or openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )

    def embed(self, text: str) -> List[float]:
        payload = text.strip()
        if not payload:
            logger.warning("Empty text provided for embedding generation")
            return []

        started = time.perf_counter()
        with trace("embedding.remote", metadata={"model": self.model, "chars": len(payload)}):
            try:
                response = self._client.embeddings.create(
                    model=self.model,
                    input=payload,
                    encoding_format="float",
                )
            except openai.OpenAIError as exc:
                raise EmbeddingUnavailableError(f"embedding request failed: {exc}") from exc

        vector = _parse_embedding(response)
        logger.debug(
            "Embedding generated in %.0fms (dims=%d)",
            (time.perf_counter() - started) * 1000,
            len(vector),
        )
        return vector


def _parse_embedding(response: Any) -> List[float]:
    try:
        raw = response.data[0].embedding
        vector = [float(value) for value in raw]
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        raise EmbeddingUnavailableError(f"malformed embedding response: {exc}") from exc
    if not vector:
        raise EmbeddingUnavailableError("embedding response contained an empty vector")
    return vector
