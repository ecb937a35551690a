"""Structured JSON logging shared by the service and the CLI entry points.

The core modules only ever call ``logging.getLogger(...)``; handlers are
installed here, once, by whichever entry point runs.
"""

import json
import logging
import os

LOGGER_NAMES = ("cleaner", "fetching", "service", "cli")

# Optional ``extra=`` fields copied into the JSON record when present
EXTRA_KEYS = (
    "url",
    "status_code",
    "output_chars",
    "text_length",
    "stats",
    "recipes",
    "consent_removed",
    "max_depth",
    "pending",
    "chars",
    "path",
)


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for structured log output."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_data[key] = val
        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging(level: str | int | None = None) -> None:
    """Attach a JSON stderr handler to every project logger.

    *level* defaults to ``LOG_LEVEL`` from the environment (INFO).  Calling
    this more than once does not stack handlers.
    """
    resolved = level or os.getenv("LOG_LEVEL", "INFO")
    if isinstance(resolved, str):
        resolved = resolved.upper()

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        for old in [h for h in logger.handlers if isinstance(h.formatter, StructuredFormatter)]:
            logger.removeHandler(old)
        logger.addHandler(handler)
        logger.setLevel(resolved)
        # Prevent propagation to root logger to avoid duplicate output
        logger.propagate = False
