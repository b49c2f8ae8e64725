"""
Logging helpers for the Operator Broker.

Wraps the standard library logger so the broker and each controller can
carry contextual fields (e.g. ``caller``) on every record.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple

from config import DEFAULT_LOG_FORMAT, LoggingConfig


class BrokerLogger(logging.LoggerAdapter):
    """
    Logger adapter carrying contextual fields.

    Fields are rendered as a ``[key=value ...]`` prefix on the message and
    attached to the record as ``record.context``.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(extra or {}))

    def child(self, **fields: Any) -> "BrokerLogger":
        """Derive a logger with additional (or overridden) fields."""
        merged = dict(self.extra)
        merged.update(fields)
        return BrokerLogger(self.logger, merged)

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self.extra)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = dict(self.extra)
        kwargs["extra"] = extra

        if self.extra:
            tags = " ".join(f"{key}={value}" for key, value in self.extra.items())
            msg = f"[{tags}] {msg}"
        return msg, kwargs


def create_logger(name: str) -> BrokerLogger:
    """Create the base logger for a broker named ``name``."""
    return BrokerLogger(logging.getLogger(name))


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure the root logger once at process startup."""
    config = config or LoggingConfig()
    logging.basicConfig(
        level=getattr(logging, config.level, logging.INFO),
        format=config.format or DEFAULT_LOG_FORMAT,
    )
