"""Logging subsystem for acmestore.

Public API::

    from acmestore.logging import configure_logging, redact_record

    configure_logging(settings.logging)
"""

from acmestore.logging.sanitize import redact_record
from acmestore.logging.setup import configure_logging

__all__ = ["configure_logging", "redact_record"]
