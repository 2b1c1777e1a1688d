"""Process-wide logging setup for the Vercel functions."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger

APP_NAME = "intercom-ticket-sync"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "googleapiclient", "google.auth", "supabase")


class LoggingConfig:
    """Logging settings read from the environment at import time."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_LIBRARY_LEVEL = os.environ.get("LOG_LIBRARY_LEVEL", "WARNING").upper()
    # Mask customer emails in log fields
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    # Ticket creation makes several sequential API calls; warn past this
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "3000"))

    _configured = False

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                "%(levelname)s %(name)s %(message)s",
                timestamp=True,
                static_fields={"app": APP_NAME},
            )
        return logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    @classmethod
    def setup_logging(cls) -> None:
        """Send all records to stdout, where Vercel collects them."""
        level = getattr(logging, cls.LOG_LEVEL, logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(cls.build_formatter())
        root_logger.addHandler(handler)

        library_level = getattr(logging, cls.LOG_LIBRARY_LEVEL, logging.WARNING)
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(library_level)

        cls._configured = True

    @classmethod
    def ensure_configured(cls) -> None:
        """Configure logging once per process (warm serverless instances reuse it)."""
        if not cls._configured:
            cls.setup_logging()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
