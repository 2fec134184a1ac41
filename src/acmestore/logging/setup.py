"""Logging configuration for acmestore.

Store code attaches record context to its log calls through ``extra``::

    log.info("Upserted ...", extra={"record_kind": "account",
                                    "collection": "accounts",
                                    "record_id": doc["id"]})

Both formatters render that context: the JSON formatter as top-level
keys, the text formatter as a trailing ``[account accounts id=...]``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from acmestore.logging.sanitize import redact_record

if TYPE_CHECKING:
    from acmestore.config.settings import LoggingSettings

# ``extra`` keys the formatters know how to render, in output order
CONTEXT_FIELDS = ("record_kind", "collection", "record_id", "backend", "query")

_DRIVER_LOGGERS = (
    "pymongo",
    "pymongo.command",
    "pymongo.connection",
    "pymongo.serverSelection",
    "pymongo.topology",
)


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the store context attached to *record*, key material redacted."""
    return {
        key: redact_record(getattr(record, key))
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, with the store context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(record_context(record))

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    _FMT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT, datefmt="%Y-%m-%d %H:%M:%S")

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        context = record_context(record)
        if not context:
            return line
        parts = [str(context.pop(key)) for key in ("record_kind", "collection") if key in context]
        if "record_id" in context:
            parts.append(f"id={context.pop('record_id')}")
        parts.extend(f"{key}={value}" for key, value in context.items())
        return f"{line} [{' '.join(parts)}]"


def configure_logging(settings: LoggingSettings, *, debug: bool = False) -> logging.Logger:
    """Configure the ``acmestore`` logger hierarchy from settings.

    Replaces any bootstrap handlers.  *debug* forces ``DEBUG`` and lets
    the MongoDB driver's own loggers through.  Returns the ``acmestore``
    logger.
    """
    level = logging.DEBUG if debug else getattr(logging, settings.level.upper(), logging.INFO)

    root = logging.getLogger("acmestore")
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter: logging.Formatter
    formatter = StructuredFormatter() if settings.format == "json" else TextFormatter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    driver_level = logging.DEBUG if debug else logging.WARNING
    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(driver_level)

    return root
