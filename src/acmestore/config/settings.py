"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the application actually reads.

Access pattern::

    from acmestore.config import get_config

    store = get_config().settings.store
    print(store.url, store.database)
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StoreSettings:
    """Document store backend, location and collection names."""

    backend: str
    url: str
    database: str
    accounts_collection: str
    certificates_collection: str
    connect_timeout_ms: int
    server_selection_timeout_ms: int
    exclusive_domains: bool
    client_options: dict


def _build_store(data: dict | None) -> StoreSettings:
    d = data or {}
    return StoreSettings(
        backend=d.get("backend", "mongodb"),
        url=d.get("url", "mongodb://localhost:27017/greenlock"),
        database=d.get("database", "greenlock"),
        accounts_collection=d.get("accounts_collection", "accounts"),
        certificates_collection=d.get("certificates_collection", "certificates"),
        connect_timeout_ms=d.get("connect_timeout_ms", 1000),
        server_selection_timeout_ms=d.get("server_selection_timeout_ms", 5000),
        exclusive_domains=d.get("exclusive_domains", True),
        client_options=dict(d.get("client_options") or {}),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "text"),
    )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AcmestoreSettings:
    """Root of the typed settings tree."""

    store: StoreSettings
    logging: LoggingSettings


def build_settings(data: dict) -> AcmestoreSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`AcmestoreConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return AcmestoreSettings(
        store=_build_store(data.get("store")),
        logging=_build_logging(data.get("logging")),
    )
