"""Explicit store handle shared by the repositories.

A :class:`RecordStore` owns one backend connection and the two document
collections.  Setup (connect + index creation) runs exactly once: the
first caller of :meth:`RecordStore.open` or :meth:`RecordStore.collection`
runs it, concurrent callers block on the same one-shot
:class:`~concurrent.futures.Future` and observe its outcome.

Failure model:

* connection failure: no collections; repositories degrade to
  "not found" and :meth:`open` raises :class:`SetupError`.
* index failure: collections stay usable, :meth:`open` still raises
  :class:`SetupError` listing every index that could not be created.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import TYPE_CHECKING, Protocol

from acmestore.collections import MemoryDatabase, MongoDatabase
from acmestore.core.types import INDEXED_FIELDS, BackendType, RecordKind
from acmestore.errors import SetupError, StoreUnavailableError

if TYPE_CHECKING:
    from pymongo import MongoClient

    from acmestore.collections.base import DocumentCollection
    from acmestore.config.settings import StoreSettings

log = logging.getLogger(__name__)


class Backend(Protocol):
    def connect(self) -> None: ...

    def collection(self, name: str) -> DocumentCollection: ...

    def close(self) -> None: ...


def make_backend(settings: StoreSettings, client: MongoClient | None = None) -> Backend:
    """Instantiate the backend named by ``settings.backend``.

    *client* is an already configured :class:`MongoClient` to reuse
    instead of opening one from ``settings.url``; the caller keeps
    ownership of it.
    """
    backend = BackendType(settings.backend)
    if backend is BackendType.MEMORY:
        return MemoryDatabase()
    return MongoDatabase(settings, client=client)


class RecordStore:
    def __init__(
        self,
        settings: StoreSettings,
        backend: Backend | None = None,
        *,
        client: MongoClient | None = None,
    ) -> None:
        self._settings = settings
        self._backend = backend if backend is not None else make_backend(settings, client)
        self._lock = threading.Lock()
        self._ready: Future[None] | None = None
        self._collections: dict[RecordKind, DocumentCollection] = {}

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    @property
    def available(self) -> bool:
        """True once setup has finished and the collections are usable."""
        ready = self._ready
        return ready is not None and ready.done() and bool(self._collections)

    def _collection_name(self, kind: RecordKind) -> str:
        if kind is RecordKind.ACCOUNT:
            return self._settings.accounts_collection
        return self._settings.certificates_collection

    # -- lifecycle ----------------------------------------------------------

    def _start(self) -> Future[None]:
        """Return the setup future, running setup if nobody has yet."""
        with self._lock:
            ready = self._ready
            owner = ready is None
            if owner:
                ready = self._ready = Future()
        if owner:
            try:
                self._setup()
            except SetupError as exc:
                log.error("%s", exc)  # noqa: TRY400
                ready.set_exception(exc)
            except Exception as exc:
                # Waiters block on the future; it must always resolve.
                error = SetupError([f"unexpected setup failure: {exc}"])
                log.exception("%s", error)
                ready.set_exception(error)
            except BaseException as exc:
                ready.set_exception(SetupError([f"setup interrupted: {exc!r}"]))
                raise
            else:
                ready.set_result(None)
        return ready

    def _setup(self) -> None:
        try:
            self._backend.connect()
        except Exception as exc:
            raise SetupError([f"connection failed: {exc}"]) from exc

        errors: list[str] = []
        collections: dict[RecordKind, DocumentCollection] = {}
        for kind in RecordKind:
            name = self._collection_name(kind)
            coll = self._backend.collection(name)
            for field in INDEXED_FIELDS:
                try:
                    coll.ensure_index(field)
                except Exception as exc:  # noqa: BLE001
                    errors.append(f"index {name}.{field}: {exc}")
            collections[kind] = coll
        self._collections = collections
        log.info(
            "Record store ready (backend=%s, accounts=%s, certificates=%s)",
            self._settings.backend,
            self._settings.accounts_collection,
            self._settings.certificates_collection,
            extra={"backend": self._settings.backend},
        )

        if errors:
            raise SetupError(errors)

    def open(self) -> None:
        """Connect and create indexes, once.

        Raises
        ------
        SetupError
            If the connection or any index could not be set up.  Every
            caller sees the same error; setup is not retried until
            :meth:`close` is called.

        """
        self._start().result()

    def close(self) -> None:
        with self._lock:
            self._ready = None
            self._collections = {}
            self._backend.close()
        log.info("Record store closed")

    def __enter__(self) -> RecordStore:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- access -------------------------------------------------------------

    def collection(self, kind: RecordKind) -> DocumentCollection | None:
        """Return the collection for *kind*, or ``None`` if the store is down.

        Triggers setup lazily on first use.  Setup errors are logged by
        the caller that ran setup and are not raised here.
        """
        self._start().exception()
        return self._collections.get(kind)

    def require(self, kind: RecordKind) -> DocumentCollection:
        """Like :meth:`collection` but raise if the store is unavailable."""
        coll = self.collection(kind)
        if coll is None:
            msg = f"{kind.value} collection is unavailable"
            raise StoreUnavailableError(msg)
        return coll
