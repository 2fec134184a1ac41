"""Document collection backends.

Public API::

    from acmestore.collections import DocumentCollection, MemoryCollection

Every backend offers the same small capability set: ``find_one``,
an atomic ``upsert``, ``ensure_index`` and ``release``.
"""

from acmestore.collections.base import DocumentCollection
from acmestore.collections.memory import MemoryCollection, MemoryDatabase
from acmestore.collections.mongo import MongoCollection, MongoDatabase

__all__ = [
    "DocumentCollection",
    "MemoryCollection",
    "MemoryDatabase",
    "MongoCollection",
    "MongoDatabase",
]
