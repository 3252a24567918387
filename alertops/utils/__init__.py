# Utils Package
"""
Cross-cutting utilities.

- error_handling.py: Exception hierarchy, timeouts, error classification
- logging_context.py: Correlation id propagation for log lines
- text.py: Value stringification and keyword matching
"""

from alertops.utils.error_handling import (
    AlertOpsError,
    PolicyConfigError,
    BackendTimeoutError,
    ModelBackendError,
    ToolRenderError,
    with_timeout,
    is_overload,
    classify_error,
)
from alertops.utils.logging_context import (
    CorrelationIdFilter,
    LoggingContext,
    setup_logging,
)
from alertops.utils.text import stringify, contains_keyword

__all__ = [
    "AlertOpsError",
    "PolicyConfigError",
    "BackendTimeoutError",
    "ModelBackendError",
    "ToolRenderError",
    "with_timeout",
    "is_overload",
    "classify_error",
    "CorrelationIdFilter",
    "LoggingContext",
    "setup_logging",
    "stringify",
    "contains_keyword",
]
