"""Per-session context utilities."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

session_id_ctx_var: ContextVar[str | None] = ContextVar("session_id", default=None)


def get_session_id() -> str | None:
    """Return the current dialogue session id if available."""
    return session_id_ctx_var.get()


@contextmanager
def bind_session_id(session_id: str) -> Iterator[None]:
    """Expose ``session_id`` to log records emitted inside the block."""
    token = session_id_ctx_var.set(session_id)
    try:
        yield
    finally:
        session_id_ctx_var.reset(token)
