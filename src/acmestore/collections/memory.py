"""In-process collection with MongoDB-compatible upsert semantics.

Every operation runs under one lock, so the find-or-create in
:meth:`MemoryCollection.upsert` is a single critical section and two
concurrent upserts with the same filter can never produce two documents.
Documents are deep-copied on the way in and out.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from acmestore.collections.base import DocumentCollection

log = logging.getLogger(__name__)

_MISSING = object()


def _get_path(doc: dict[str, Any], path: str) -> Any:  # noqa: ANN401
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _set_path(doc: dict[str, Any], path: str, value: Any) -> None:  # noqa: ANN401
    parts = path.split(".")
    current = doc
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = copy.deepcopy(value)


def _equals(stored: Any, expected: Any) -> bool:  # noqa: ANN401
    if stored is _MISSING:
        return expected is None
    # Equality against an array field matches any element.
    if isinstance(stored, list) and not isinstance(expected, list):
        return expected in stored
    return stored == expected


def _is_operator(cond: Any) -> bool:  # noqa: ANN401
    return isinstance(cond, dict) and bool(cond) and all(k.startswith("$") for k in cond)


def matches(doc: dict[str, Any], filter: dict[str, Any]) -> bool:  # noqa: A002
    """Return True if *doc* satisfies *filter*."""
    for key, cond in filter.items():
        stored = _get_path(doc, key)
        if _is_operator(cond):
            for op, operand in cond.items():
                if op == "$in":
                    if not any(_equals(stored, item) for item in operand):
                        return False
                elif op == "$ne":
                    if _equals(stored, operand):
                        return False
                else:
                    msg = f"Unsupported query operator '{op}'"
                    raise ValueError(msg)
        elif not _equals(stored, cond):
            return False
    return True


class MemoryCollection(DocumentCollection):
    def __init__(self, name: str) -> None:
        self.name = name
        self._docs: list[dict[str, Any]] = []
        self._indexes: set[str] = set()
        self._lock = threading.Lock()

    @property
    def indexes(self) -> frozenset[str]:
        return frozenset(self._indexes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)

    def _find(self, filter: dict[str, Any]) -> dict[str, Any] | None:  # noqa: A002
        for doc in self._docs:
            if matches(doc, filter):
                return doc
        return None

    def find_one(self, filter: dict[str, Any]) -> dict[str, Any] | None:  # noqa: A002
        with self._lock:
            doc = self._find(filter)
            return copy.deepcopy(doc) if doc is not None else None

    def upsert(
        self,
        filter: dict[str, Any],  # noqa: A002
        set_fields: dict[str, Any],
        *,
        create_defaults: dict[str, Any] | None = None,
        create: bool = True,
    ) -> dict[str, Any] | None:
        with self._lock:
            doc = self._find(filter)
            if doc is None:
                if not create:
                    return None
                doc = {}
                for key, cond in filter.items():
                    if not _is_operator(cond):
                        _set_path(doc, key, cond)
                for key, value in (create_defaults or {}).items():
                    if key not in set_fields:
                        _set_path(doc, key, value)
                self._docs.append(doc)
                log.debug("Inserted document into %s", self.name)
            for key, value in set_fields.items():
                _set_path(doc, key, value)
            return copy.deepcopy(doc)

    def ensure_index(self, field: str) -> None:
        with self._lock:
            self._indexes.add(field)

    def release(self, field: str, values: list[Any], keep_id: str) -> int:
        released = set(values)
        modified = 0
        with self._lock:
            for doc in self._docs:
                if doc.get("id") == keep_id:
                    continue
                stored = doc.get(field)
                if isinstance(stored, list) and released.intersection(stored):
                    doc[field] = [v for v in stored if v not in released]
                    modified += 1
        return modified


class MemoryDatabase:
    """Named :class:`MemoryCollection` instances for one process."""

    def __init__(self) -> None:
        self._collections: dict[str, MemoryCollection] = {}
        self._lock = threading.Lock()

    def connect(self) -> None:
        log.info("Using in-memory document store")

    def collection(self, name: str) -> MemoryCollection:
        with self._lock:
            coll = self._collections.get(name)
            if coll is None:
                coll = MemoryCollection(name)
                self._collections[name] = coll
            return coll

    def close(self) -> None:
        with self._lock:
            self._collections.clear()
