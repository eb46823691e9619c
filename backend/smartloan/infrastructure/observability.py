"""Structured Logging — JSON log lines carrying underwriting context.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Underwriting extras (application_id, rule_id, error_code, eligible, risk_score,
      recommended_action, revision) are surfaced when a log call passes them
    - JSON format in production, human-readable in development

Design Decisions:
    - Plain logging.Formatter subclass; services attach context through `extra=`
    - setup_logging called once on startup via lifespan
"""

import logging
import json
from datetime import datetime, timezone

LOG_EXTRA_FIELDS = (
    "application_id", "rule_id", "error_code", "eligible",
    "risk_score", "recommended_action", "revision", "path",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in LOG_EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
