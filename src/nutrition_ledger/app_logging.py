"""Logging configuration helpers."""

import logging

APP_LOGGER = "nutrition_ledger"
INCIDENT_LOGGER = "nutrition_ledger.incidents"

# `extra` keys worth printing when a record carries them.
CONTEXT_KEYS = ("user_id", "day", "entry_id", "deltas", "drift", "path")


class ContextFormatter(logging.Formatter):
    """Formatter that appends ledger context passed through ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_KEYS
            if hasattr(record, key)
        ]
        if context:
            return f"{message} [{' '.join(context)}]"
        return message


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging with a single stream handler.

    Incident records stay visible even when the application level is raised
    above WARNING.
    """
    logger = logging.getLogger(APP_LOGGER)
    logger.setLevel(level.upper())
    logging.getLogger(INCIDENT_LOGGER).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
