"""Structured logging configuration.

JSON log lines carry the run and request identifiers so a merge can be
followed from the HTTP request through every batch to delivery and cleanup.
"""

import json
import logging
from datetime import datetime, timezone

# Fields copied from logger.info(..., extra={...}) into the JSON line
EXTRA_FIELDS = (
    "trace_id",
    "run_id",
    "order_id",
    "stage",
    "target",
    "batch_count",
    "page_count",
    "size_bytes",
    "error_code",
    "http_status",
    "duration_ms",
    "stage_ms",
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Example:
        >>> logger.info("Merged", extra={"run_id": "abc", "page_count": 5})
        # Output: {"timestamp": "2025-12-05T17:52:00Z", "level": "INFO",
        #          "message": "Merged", "run_id": "abc", "page_count": 5, ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.process:
            log_data["process_id"] = record.process
        if record.thread:
            log_data["thread_id"] = record.thread

        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


def configure_structured_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> None:
    """Configure root logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatter (True) or plain text (False)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Suppress noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    # pypdf warns on every slightly malformed xref table
    logging.getLogger("pypdf").setLevel(logging.ERROR)
