"""MongoDB backend built on pymongo.

The upsert maps directly onto ``find_one_and_update`` with ``$set`` /
``$setOnInsert`` and ``ReturnDocument.AFTER``, so create-or-update is a
single server-side atomic operation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo import ASCENDING, MongoClient, ReturnDocument

from acmestore.collections.base import DocumentCollection

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from pymongo.database import Database

    from acmestore.config.settings import StoreSettings

log = logging.getLogger(__name__)

# Never hand the driver's ObjectId back to callers.
_PROJECTION = {"_id": False}


class MongoCollection(DocumentCollection):
    def __init__(self, collection: Collection) -> None:
        self._collection = collection
        self.name = collection.name

    def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:  # noqa: A002
        return self._collection.find_one(filter, _PROJECTION)

    def upsert(
        self,
        filter: dict[str, Any],  # noqa: A002
        set_fields: dict[str, Any],
        *,
        create_defaults: dict[str, Any] | None = None,
        create: bool = True,
    ) -> dict[str, Any] | None:
        update: dict[str, Any] = {}
        if set_fields:
            update["$set"] = set_fields
        on_insert = {
            k: v for k, v in (create_defaults or {}).items() if k not in set_fields
        }
        if on_insert and create:
            update["$setOnInsert"] = on_insert
        if not update:
            # An empty update document is rejected by the server.
            return self.find_one(filter)

        return self._collection.find_one_and_update(
            filter,
            update,
            projection=_PROJECTION,
            upsert=create,
            return_document=ReturnDocument.AFTER,
        )

    def ensure_index(self, field: str) -> None:
        self._collection.create_index([(field, ASCENDING)], background=True)

    def release(self, field: str, values: list[Any], keep_id: str) -> int:
        result = self._collection.update_many(
            {field: {"$in": values}, "id": {"$ne": keep_id}},
            {"$pull": {field: {"$in": values}}},
        )
        return result.modified_count


class MongoDatabase:
    """Hands out collections from one :class:`MongoClient`.

    The client is opened from ``settings.url`` on :meth:`connect`, with
    ``settings.client_options`` passed through to the driver.  A client
    handed in by the caller is used as-is and left open on
    :meth:`close`.
    """

    def __init__(self, settings: StoreSettings, client: MongoClient | None = None) -> None:
        self._settings = settings
        self._client: MongoClient | None = client
        self._owns_client = client is None
        self._db: Database | None = None

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "connectTimeoutMS": self._settings.connect_timeout_ms,
            "serverSelectionTimeoutMS": self._settings.server_selection_timeout_ms,
            "tz_aware": True,
        }
        kwargs.update(self._settings.client_options)
        return kwargs

    def connect(self) -> None:
        """Open the client and verify the server answers a ping.

        ``MongoClient`` connects lazily; the ping surfaces an
        unreachable server at setup time instead of on the first query.
        """
        if self._owns_client:
            log.info(
                "Connecting to MongoDB: %s (database=%s)",
                sanitize_mongodb_url(self._settings.url),
                self._settings.database,
            )
            client: MongoClient = MongoClient(self._settings.url, **self._client_kwargs())
        else:
            log.info("Using provided MongoDB client (database=%s)", self._settings.database)
            client = self._client
        try:
            client.admin.command("ping")
        except Exception:
            if self._owns_client:
                client.close()
            raise
        self._client = client
        self._db = client[self._settings.database]

    def collection(self, name: str) -> MongoCollection:
        if self._db is None:
            msg = "MongoDB connection is not open"
            raise RuntimeError(msg)
        return MongoCollection(self._db[name])

    def close(self) -> None:
        self._db = None
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None


def sanitize_mongodb_url(url: str) -> str:
    """Hide the password in a MongoDB URL for safe logging."""
    if "://" not in url or "@" not in url:
        return url
    protocol, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        username = credentials.split(":", 1)[0]
        return f"{protocol}://{username}:***@{host}"
    return url
