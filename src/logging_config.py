"""Logging setup - plain text records stamped with the current delivery id."""
import logging
import sys
from contextvars import ContextVar

delivery_id: ContextVar[str | None] = ContextVar("delivery_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(delivery_id)s] %(name)s: %(message)s"


class DeliveryIdFilter(logging.Filter):
    """Add the delivery id of the request being handled to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.delivery_id = delivery_id.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger. Safe to call twice."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {level}")
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_delivery_handler", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler._delivery_handler = True
    handler.addFilter(DeliveryIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric)
