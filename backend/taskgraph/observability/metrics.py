"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from taskgraph.observability.client import get_opik_client

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a planner metric as an Opik trace when Opik is enabled."""
    client = get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
        metric_trace.end()
    except Exception as exc:  # pragma: no cover
        logger.debug("Unable to record metric %s: %s", name, exc)
