"""Store initialisation from acmestore configuration.

Usage::

    from acmestore.config import get_config
    from acmestore.db.init import init_store

    store = init_store(get_config().settings.store)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from acmestore.db.record_store import RecordStore

if TYPE_CHECKING:
    from pymongo import MongoClient

    from acmestore.config.settings import StoreSettings

log = logging.getLogger(__name__)


def init_store(
    settings: StoreSettings,
    *,
    connect: bool = True,
    client: MongoClient | None = None,
) -> RecordStore:
    """Build a :class:`RecordStore` from config settings.

    Parameters
    ----------
    settings:
        The ``store`` section from :class:`AcmestoreSettings`.
    connect:
        Run connection and index setup now.  When false, setup runs
        lazily on first use.
    client:
        An open :class:`MongoClient` to use instead of one built from
        ``settings``.  The caller keeps ownership of it.

    Raises
    ------
    SetupError
        If *connect* is true and setup fails.

    """
    log.info(
        "Initialising %s record store: database=%s",
        settings.backend,
        settings.database,
    )
    store = RecordStore(settings, client=client)
    if connect:
        store.open()
    return store
