"""Shared HTTP plumbing for builtin tools: client construction and failure messages."""
import logging
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def make_client(
    timeout: float = DEFAULT_TIMEOUT_S,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, transport=transport, headers=headers)


def describe_upstream_error(
    exc: Exception,
    service: str,
    tool_name: str,
    not_found: str,
    status_messages: Optional[Dict[int, str]] = None,
) -> str:
    """Map an upstream failure to a stable, user-facing message.

    ``service`` is the capitalised upstream label ("Weather"), ``not_found``
    the tool-specific 404 message. ``status_messages`` overrides or adds
    per-status texts.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status_messages and status in status_messages:
            return status_messages[status]
        if status == 404:
            return not_found
        if status == 401:
            return f"Invalid {service.lower()} API key. Please check your configuration."
        if status == 429:
            return f"{service} API rate limit exceeded. Please try again later."
        if 500 <= status < 600:
            return f"{service} service is temporarily unavailable. Please try again later."
        reason = exc.response.reason_phrase or "Unknown error"
        return f"{service} API error: {reason} ({status})"
    if isinstance(exc, httpx.TimeoutException):
        return f"{service} request timed out. Please try again."
    if isinstance(exc, httpx.ConnectError):
        return f"Unable to connect to {service.lower()} service. Please check your internet connection."
    if isinstance(exc, (KeyError, IndexError, TypeError, ValueError)):
        return f"{service} service returned an unexpected response. Please try again later."
    return f"The {tool_name} tool failed due to a network error."
