"""Per-request context — task-local record used to tag every log line.

A new RequestContext is bound for each incoming message via
``request_scope()``. asyncio copies the current context into every task it
creates, so concurrently handled messages each see only their own record.
"""
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Iterator, Optional


@dataclass
class RequestContext:
    request_id: str
    user_id: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    message_type: Optional[str] = None
    tool_used: Optional[str] = None


_current: ContextVar[Optional[RequestContext]] = ContextVar("mindbot_request", default=None)


def generate_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:8]}"


@contextmanager
def request_scope(
    user_id: Optional[str] = None,
    message_type: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[RequestContext]:
    """Bind a fresh RequestContext for the duration of the block."""
    ctx = RequestContext(
        request_id=request_id or generate_request_id(),
        user_id=user_id,
        message_type=message_type,
    )
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


def current_context() -> Optional[RequestContext]:
    return _current.get()


def update_context(**updates) -> None:
    """Annotate the active context in place. No-op outside a request scope."""
    ctx = _current.get()
    if ctx is None:
        return
    for key, value in updates.items():
        if not hasattr(ctx, key):
            raise AttributeError(f"RequestContext has no field {key!r}")
        setattr(ctx, key, value)


def request_duration_ms() -> float:
    ctx = _current.get()
    if ctx is None:
        return 0.0
    return (time.time() - ctx.start_time) * 1000.0
