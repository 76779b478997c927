"""Logging setup and structured telemetry events.

Every record passing through a handler configured by ``configure_logging``
carries the active RequestContext fields (request_id, user_id, message_type,
tool_used), so log lines from one message can be correlated.
"""
import logging
from typing import Any, Optional

from .context import current_context

logger = logging.getLogger("mindbot.telemetry")

CONTEXT_FIELDS = ("request_id", "user_id", "message_type", "tool_used")

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(request_id)s user=%(user_id)s tool=%(tool_used)s] %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Copy the current RequestContext onto each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = current_context()
        for name in CONTEXT_FIELDS:
            value = getattr(ctx, name, None) if ctx else None
            if not hasattr(record, name):
                setattr(record, name, value if value is not None else "-")
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestContextFilter) for f in handler.filters):
            handler.addFilter(RequestContextFilter())


def _emit(level: int, message: str, component: str, operation: str, **fields: Any) -> None:
    details = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
    logger.log(
        level,
        f"{message} ({component}.{operation}) {details}".rstrip(),
        extra={"component": component, "operation": operation, "fields": fields},
    )


def log_user_message(message_type: str, text_length: int) -> None:
    _emit(logging.INFO, "User message received", "MessageHandler", "receive",
          message_type=message_type, text_length=text_length)


def log_rate_limit(user_id: str, admitted: bool, remaining: Optional[int], reset_time: Optional[int]) -> None:
    _emit(logging.INFO, "Rate limit checked", "RateLimit", "check",
          user_id=user_id, admitted=admitted, remaining=remaining, reset_time=reset_time)


def log_routing_decision(should_use_tool: bool, tool_name: Optional[str]) -> None:
    _emit(logging.INFO, "Routing decision", "ToolRouter", "route",
          should_use_tool=should_use_tool, tool=tool_name)


def log_tool_execution(tool_name: str, duration_ms: float, success: bool, error: Optional[str] = None) -> None:
    status = "completed" if success else "failed"
    _emit(logging.INFO if success else logging.WARNING, f"Tool execution {status}", "ToolExecution", "execute",
          tool=tool_name, duration_ms=round(duration_ms, 1), success=success, error=error)


def log_llm_call(model: str, prompt_tokens: int, completion_tokens: int, duration_ms: float) -> None:
    _emit(logging.INFO, "LLM API call completed", "LLM", "completion",
          model=model, prompt_tokens=prompt_tokens, completion_tokens=completion_tokens,
          total_tokens=prompt_tokens + completion_tokens, duration_ms=round(duration_ms, 1))


def log_formatting(tool_name: str, fallback: bool) -> None:
    _emit(logging.INFO if not fallback else logging.WARNING, "Response formatted", "ResponseFormatter", "format",
          tool=tool_name, fallback=fallback)
