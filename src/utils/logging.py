"""Structured logging helpers: keyword fields, request correlation IDs, timing and email masking."""

import logging
import time
import uuid
import hashlib
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Optional, Dict
from datetime import datetime, timezone

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# LogRecord attributes; passing one of these in ``extra`` raises KeyError
_RESERVED_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


def generate_correlation_id() -> str:
    """Short ID tying together every log line of one webhook delivery."""
    return f"wh_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Set the correlation ID for the duration of one request."""
    token = _correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)


def mask_email(email: Optional[str]) -> Optional[str]:
    """Keep the first two characters of the local part and the domain.

    ``dana.whitfield@example.com`` -> ``da***@example.com``. Strings without
    an ``@`` are replaced by a short hash so they can still be correlated.
    """
    if not email or not LoggingConfig.LOG_MASK_SENSITIVE:
        return email
    local, sep, domain = email.partition("@")
    if not sep:
        return hashlib.sha256(email.encode()).hexdigest()[:8]
    return f"{local[:2]}***@{domain}"


def truncate_text(text: Optional[str], max_length: int = 500) -> Optional[str]:
    if not text or len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class StructuredLogger:
    """Wraps a stdlib logger so fields are passed as keyword arguments.

    Example:
        logger.info("Created ticket", conversation_id="215467", ticket_number="00042")

    Fields bound with ``bind`` are added to every line.
    """

    def __init__(self, logger: logging.Logger, **bound: Any):
        self.logger = logger
        self.bound = bound

    def bind(self, **fields: Any) -> "StructuredLogger":
        return StructuredLogger(self.logger, **{**self.bound, **fields})

    def _get_extra(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}

        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id

        for key, value in {**self.bound, **fields}.items():
            if key in _RESERVED_FIELDS:
                key = f"field_{key}"
            extra[key] = value
        return extra

    def debug(self, message: str, **fields: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(fields))

    def info(self, message: str, **fields: Any) -> None:
        self.logger.info(message, extra=self._get_extra(fields))

    def warning(self, message: str, **fields: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(fields))

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self.logger.error(message, extra=self._get_extra(fields), exc_info=exc_info)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Log how long a block took, and warn when it passes the slow threshold.

    The completion line carries ``outcome`` (``ok`` or ``failed``); the
    exception itself is left to the caller.
    """
    if logger is None:
        logger = get_structured_logger(__name__)

    start = time.perf_counter()
    outcome = "failed"
    try:
        yield
        outcome = "ok"
    finally:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            f"Finished {operation_name}",
            operation=operation_name,
            outcome=outcome,
            duration_ms=elapsed_ms,
            **context
        )
        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                f"Slow operation: {operation_name}",
                operation=operation_name,
                duration_ms=elapsed_ms,
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **context
            )
