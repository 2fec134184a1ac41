"""Enumerated types for the acmestore persistence layer.

All enums inherit from ``StrEnum`` so their ``.value`` is a plain string
that round-trips through YAML, JSON and BSON unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class RecordKind(StrEnum):
    ACCOUNT = "account"
    CERTIFICATE = "certificate"


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class BackendType(StrEnum):
    MONGODB = "mongodb"
    MEMORY = "memory"


# ---------------------------------------------------------------------------
# Document field names
# ---------------------------------------------------------------------------

FIELD_ID = "id"
FIELD_ACCOUNT_ID = "accountId"
FIELD_EMAIL = "email"
FIELD_DOMAINS = "domains"
FIELD_KEYPAIR = "keypair"
FIELD_CREATED = "created"
FIELD_UPDATED = "updated"

# Fields indexed on both collections during setup.
INDEXED_FIELDS: tuple[str, ...] = (
    FIELD_ID,
    "privkey",
    "cert",
    FIELD_DOMAINS,
    FIELD_EMAIL,
    FIELD_ACCOUNT_ID,
)
