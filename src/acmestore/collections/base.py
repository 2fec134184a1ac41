"""Abstract document collection contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class DocumentCollection(ABC):
    """A single collection of schemaless documents.

    Filters use the MongoDB query subset the repositories need:
    equality (which also matches membership when the stored field is an
    array), ``{"$in": [...]}`` and ``{"$ne": value}``.
    """

    name: str

    @abstractmethod
    def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:  # noqa: A002
        """Return one document matching *filter*, or ``None``."""

    @abstractmethod
    def upsert(
        self,
        filter: dict[str, Any],  # noqa: A002
        set_fields: dict[str, Any],
        *,
        create_defaults: dict[str, Any] | None = None,
        create: bool = True,
    ) -> dict[str, Any] | None:
        """Atomically update the document matching *filter* or insert one.

        *set_fields* are applied on every call (dotted keys address
        nested members).  *create_defaults* are applied only when a new
        document is inserted; so are the equality members of *filter*.
        With ``create=False`` nothing is inserted and ``None`` is
        returned when no document matches.

        Returns the document as it is *after* the update.
        """

    @abstractmethod
    def ensure_index(self, field: str) -> None:
        """Create a non-unique index on *field* if it does not exist."""

    @abstractmethod
    def release(self, field: str, values: list[Any], keep_id: str) -> int:
        """Remove *values* from array *field* on every document but *keep_id*.

        Returns the number of documents modified.
        """
