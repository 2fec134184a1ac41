"""Repository classes for the acmestore persistence layer.

Each repository extends :class:`BaseRepository`, which routes every
lookup through :func:`query_candidates` and every write through the
collection's single atomic upsert.
"""

from acmestore.repositories.account import AccountRepository
from acmestore.repositories.base import BaseRepository
from acmestore.repositories.certificate import CertificateRepository

__all__ = [
    "AccountRepository",
    "BaseRepository",
    "CertificateRepository",
]
