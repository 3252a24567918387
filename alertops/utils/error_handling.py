"""
Error Handling Utilities

Provides:
- The alertops exception hierarchy
- Timeout wrapper for backend calls
- Error classification (network, timeout, overload, ...)
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Response fragments that mean the backend is saturated rather than broken
OVERLOAD_MARKERS = ("eof", "overloaded", "server busy", "too many requests", "unavailable")
OVERLOAD_STATUS_CODES = (429, 503)


class AlertOpsError(Exception):
    """Base class for alertops errors."""
    pass


class PolicyConfigError(AlertOpsError):
    """Raised when the policy source or a policy-derived record is invalid.

    Always fatal to the request: a broken policy file must never look like
    an ordinary "no match".
    """
    pass


class BackendTimeoutError(AlertOpsError):
    """Raised when a model backend call exceeds its time budget."""
    pass


class ModelBackendError(AlertOpsError):
    """Raised for a failed call to one model; the cascade moves on."""

    def __init__(self, message: str, category: str = "unknown", status_code: Optional[int] = None):
        super().__init__(message)
        self.category = category
        self.status_code = status_code


class ToolRenderError(AlertOpsError):
    """Raised when a remote tool renderer cannot produce an action."""
    pass


async def with_timeout(awaitable: Awaitable[T], timeout_seconds: float, operation: str) -> T:
    """
    Await with a hard time budget, cancelling the call on expiry.

    Args:
        awaitable: Coroutine to run.
        timeout_seconds: Maximum execution time.
        operation: Name used in the log line and error message.

    Returns:
        The awaited result.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"[Timeout] {operation} timed out after {timeout_seconds}s")
        raise BackendTimeoutError(f"{operation} timed out after {timeout_seconds}s")


def is_overload(status_code: Optional[int], body: str = "") -> bool:
    """True if a backend response belongs to the overload class of failures."""
    if status_code in OVERLOAD_STATUS_CODES:
        return True
    body_lower = (body or "").lower()
    return any(marker in body_lower for marker in OVERLOAD_MARKERS)


def classify_error(error: Exception) -> str:
    """
    Classify an error for appropriate handling.

    Args:
        error: Exception to classify.

    Returns:
        Error category string.
    """
    if isinstance(error, ModelBackendError):
        return error.category

    error_name = type(error).__name__.lower()
    error_msg = str(error).lower()

    # Timeout errors (checked first: httpx timeouts are also transport errors)
    if "timeout" in error_name or "timed out" in error_msg:
        return "timeout"

    # Network errors
    if any(x in error_name for x in ["connect", "network", "socket", "transport"]):
        return "network"
    if any(x in error_msg for x in ["connection refused", "network unreachable"]):
        return "network"

    if any(marker in error_msg for marker in OVERLOAD_MARKERS):
        return "overload"

    # Validation errors
    if "validation" in error_name or "decode" in error_name or "invalid" in error_msg:
        return "validation"

    return "unknown"
