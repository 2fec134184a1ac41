"""Store lifecycle for acmestore.

Public API::

    from acmestore.db import RecordStore, init_store
"""

from acmestore.db.init import init_store
from acmestore.db.record_store import RecordStore

__all__ = [
    "RecordStore",
    "init_store",
]
