"""
Logging Context - Per-request Correlation ID

Every alert processed by the pipeline gets a correlation id stored in a
ContextVar. CorrelationIdFilter copies it onto each LogRecord so that all
parser, decision and formatter lines of one request can be grouped.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Dict, Optional

# Context vars are task-local under asyncio
_correlation_id: ContextVar[str] = ContextVar('correlation_id', default='')
_alert_type: ContextVar[str] = ContextVar('alert_type', default='')

DEFAULT_LOG_FORMAT = (
    '[%(asctime)s] %(levelname)-8s '
    '[correlation_id=%(correlation_id)s] '
    '%(name)s: %(message)s'
)


class CorrelationIdFilter(logging.Filter):
    """Filter that adds correlation_id and alert_type to each LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or 'N/A'
        record.alert_type = _alert_type.get() or 'N/A'
        return True


class LoggingContext:
    """Accessors for the per-request logging context."""

    @staticmethod
    def set_correlation_id(correlation_id: Optional[str] = None) -> str:
        """Set correlation_id, generating a new one if not given.

        Args:
            correlation_id: Existing id (e.g. the chat message id)

        Returns:
            The correlation_id now in effect
        """
        if not correlation_id:
            correlation_id = str(uuid.uuid4())

        _correlation_id.set(correlation_id)
        return correlation_id

    @staticmethod
    def get_correlation_id() -> str:
        return _correlation_id.get()

    @staticmethod
    def set_alert_type(alert_type: Optional[str]) -> None:
        _alert_type.set(alert_type or '')

    @staticmethod
    def get_context() -> Dict[str, str]:
        return {
            "correlation_id": _correlation_id.get(),
            "alert_type": _alert_type.get(),
        }

    @staticmethod
    def clear_context():
        """Reset all context values."""
        _correlation_id.set('')
        _alert_type.set('')


def setup_logging(log_level: str = "INFO", log_format: Optional[str] = None) -> None:
    """Configure root logging with the correlation id filter.

    Args:
        log_level: Level name (DEBUG, INFO, ...)
        log_format: Custom format (defaults to DEFAULT_LOG_FORMAT)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(log_format or DEFAULT_LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
