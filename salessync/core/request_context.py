from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RequestContext:
    """Identifiers attached to every log line of the current request."""

    request_id: str | None = None
    company_id: str | None = None
    user_id: str | None = None


_EMPTY = RequestContext()
_CONTEXT: ContextVar[RequestContext] = ContextVar("request_context", default=_EMPTY)


def set_request_context(
    *, request_id: str | None = None, company_id: str | None = None, user_id: str | None = None
) -> RequestContext:
    """Merge the given ids into the current context; ``None`` keeps the old value."""
    changes = {
        key: value
        for key, value in (("request_id", request_id), ("company_id", company_id), ("user_id", user_id))
        if value is not None
    }
    context = replace(_CONTEXT.get(), **changes)
    _CONTEXT.set(context)
    return context


def get_request_context() -> RequestContext:
    return _CONTEXT.get()


def clear_request_context() -> None:
    _CONTEXT.set(_EMPTY)
