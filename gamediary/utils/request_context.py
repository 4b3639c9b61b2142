"""Request-scoped identifier shared by the middleware and error handlers.

The middleware in :mod:`gamediary.main` stores a fresh identifier for every
inbound request; error payloads read it back so clients can quote it when
reporting a failed curation action.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

__all__ = [
    "REQUEST_ID_CONTEXT",
    "REQUEST_ID_HEADER",
    "clear_request_id",
    "get_request_id",
    "new_request_id",
    "set_request_id",
]

REQUEST_ID_HEADER = "X-Request-ID"

REQUEST_ID_CONTEXT: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id(incoming: str | None = None) -> str:
    """Reuse a well-formed identifier forwarded by a proxy, else mint one."""

    if incoming:
        candidate = incoming.strip()
        if 0 < len(candidate) <= 128 and candidate.isprintable():
            return candidate
    return str(uuid.uuid4())


def set_request_id(request_id: str) -> Token[str]:
    return REQUEST_ID_CONTEXT.set(request_id)


def get_request_id() -> str:
    """Current request identifier, or an empty string outside a request."""

    return REQUEST_ID_CONTEXT.get()


def clear_request_id(token: Token[str] | None = None) -> None:
    if token is not None:
        REQUEST_ID_CONTEXT.reset(token)
    else:
        REQUEST_ID_CONTEXT.set("")
