"""Shared lookup and upsert logic for both record kinds."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from acmestore.core.query import ByDomains, ByEmail, ById, Query, query_candidates
from acmestore.core.types import (
    FIELD_CREATED,
    FIELD_DOMAINS,
    FIELD_EMAIL,
    FIELD_ID,
    FIELD_UPDATED,
)

if TYPE_CHECKING:
    from acmestore.collections.base import DocumentCollection
    from acmestore.core.types import RecordKind
    from acmestore.db.record_store import RecordStore

log = logging.getLogger(__name__)


class BaseRepository:
    """Find-or-create over one document collection.

    A raw query may carry several lookup keys (``id``, ``email``,
    ``domains``...).  They are tried in :attr:`precedence` order: the
    first key that matches a stored document wins.  A write that matches
    nothing is inserted through the first key allowed to create, and the
    new document is seeded with every other key of the query, so a
    caller-supplied ``id`` that names no record is ignored rather than
    losing the write.

    Subclasses set :attr:`kind` and :attr:`precedence` and may override
    :meth:`_to_filter`, :meth:`_creates` and :meth:`_seed`.
    """

    kind: RecordKind
    precedence: tuple[str, ...]
    # Fields a caller may never write: the store owns them.
    protected_fields: frozenset[str] = frozenset({"_id", FIELD_ID, FIELD_CREATED, FIELD_UPDATED})

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def _collection(self) -> DocumentCollection | None:
        coll = self._store.collection(self.kind)
        if coll is None:
            log.warning(
                "%s store unavailable; operation has no effect",
                self.kind.value,
                extra={"record_kind": self.kind.value},
            )
        return coll

    def _log_context(self, coll: DocumentCollection, doc: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "record_kind": self.kind.value,
            "collection": coll.name,
            "record_id": doc.get(FIELD_ID),
        }

    def candidates(self, query: Query | Mapping[str, Any]) -> tuple[Query, ...]:
        return query_candidates(query, self.precedence)

    def _to_filter(self, query: Query) -> dict[str, Any]:
        return query.to_filter()

    def _creates(self, query: Query) -> bool:
        """Whether an upsert with *query* may insert a new document.

        Identifiers are assigned by the store, so a lookup by identifier
        can only ever update.
        """
        return not isinstance(query, ById)

    def _seed(self, query: Query) -> dict[str, Any]:
        """Fields a document inserted for a query carrying *query* starts with."""
        if isinstance(query, ByEmail):
            return {FIELD_EMAIL: query.email}
        if isinstance(query, ByDomains):
            return {FIELD_DOMAINS: list(query.domains)}
        return {}

    def strip_protected(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Drop store-owned fields from a caller payload."""
        dropped = sorted(k for k in fields if k in self.protected_fields)
        if dropped:
            log.debug("Ignoring store-owned fields in %s payload: %s", self.kind.value, dropped)
        return {k: v for k, v in fields.items() if k not in self.protected_fields}

    def find_document(self, query: Query | Mapping[str, Any]) -> dict[str, Any] | None:
        """Return the stored document matching *query*, or ``None``."""
        candidates = self.candidates(query)
        coll = self._collection()
        if coll is None:
            return None
        for candidate in candidates:
            doc = coll.find_one(self._to_filter(candidate))
            if doc is not None:
                return doc
        return None

    def upsert_document(
        self,
        query: Query | Mapping[str, Any],
        fields: Mapping[str, Any],
        *,
        create_defaults: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Merge *fields* into the document matching *query*, creating it if needed.

        Each attempt is one atomic collection upsert.  ``id``, ``created``
        and the query's seed fields are insert-only defaults; ``updated``
        is refreshed on every write.  Returns the post-update document,
        or ``None`` when the store is unavailable or the query only
        carried identifiers that matched nothing.
        """
        candidates = self.candidates(query)
        coll = self._collection()
        if coll is None:
            return None

        now = datetime.now(UTC)
        set_fields = {**fields, FIELD_UPDATED: now}
        for candidate in candidates:
            creates = self._creates(candidate)
            defaults: dict[str, Any] = {}
            if creates:
                for other in candidates:
                    # Equality filters are copied into an insert by the backend.
                    if other is not candidate or isinstance(other, ByDomains):
                        defaults.update(self._seed(other))
                defaults.update({FIELD_ID: uuid4().hex, FIELD_CREATED: now})
                defaults.update(create_defaults or {})
            doc = coll.upsert(
                self._to_filter(candidate),
                set_fields,
                create_defaults=defaults,
                create=creates,
            )
            if doc is not None:
                log.debug(
                    "Upserted %s %s via %s",
                    self.kind.value,
                    doc.get(FIELD_ID),
                    type(candidate).__name__,
                    extra=self._log_context(coll, doc),
                )
                return doc
            log.debug(
                "No %s matched %s",
                self.kind.value,
                type(candidate).__name__,
                extra={
                    "record_kind": self.kind.value,
                    "collection": coll.name,
                    "query": self._to_filter(candidate),
                },
            )
        return None
