"""Per-session and per-request observability context helpers."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Optional

_request_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "logiq_request_id",
    default=None,
)
_session_id_ctx: ContextVar[Optional[str]] = ContextVar(
    "logiq_session_id",
    default=None,
)


def set_request_id(request_id: str) -> Token:
    """Bind request ID to the current execution context."""
    return _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()


def reset_request_id(token: Token) -> None:
    _request_id_ctx.reset(token)


def set_session_id(session_id: str) -> Token:
    """Bind the active quiz session ID to the current execution context."""
    return _session_id_ctx.set(session_id)


def get_session_id() -> Optional[str]:
    return _session_id_ctx.get()


def reset_session_id(token: Token) -> None:
    _session_id_ctx.reset(token)
