"""
Top-Up Reconciler - Structured Logging

Records carry an `event` name plus keyed context fields, attached through
`extra=` so handlers and tests can read them off the LogRecord.
"""

import logging
from typing import Any, Optional

ROOT_LOGGER = "topup"


class EventFormatter(logging.Formatter):
    """Render `event key=value ...` after the standard prefix."""
    
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = getattr(record, "fields", None)
        if not fields:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{base} {rendered}"


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit a structured event record."""
    logger.log(level, event, extra={"event": event, "fields": fields})


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Install a single stream handler on the package logger."""
    if level is None:
        from topup.core.config import get_settings
        level = get_settings().LOG_LEVEL
    
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())
    
    if not any(getattr(h, "_topup_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(EventFormatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        handler._topup_handler = True
        logger.addHandler(handler)
    
    return logger
