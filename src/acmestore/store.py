"""Upstream-facing store facade.

The certificate-issuance workflow talks to a small get/set contract per
record kind::

    store = create_store({"store": {"url": "mongodb://db:27017/greenlock"}})

    store.accounts.check_keypair({"email": "a@x.com"})
    store.accounts.set_keypair({"email": "a@x.com"}, {"privateKeyPem": pem})
    store.accounts.check({"accountId": "..."})
    store.accounts.set({"email": "a@x.com"}, {"agreeTos": True})

    store.certificates.check({"domains": ["www.example.com"]})
    store.certificates.set({"domains": ["example.com"]}, {"cert": ..., "privkey": ...})

Every method returns a plain document dict, or ``None`` when nothing
matched or the store is unavailable.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Any

from acmestore.config import AcmestoreConfig
from acmestore.db.record_store import RecordStore
from acmestore.errors import SetupError
from acmestore.repositories import AccountRepository, CertificateRepository

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pymongo import MongoClient

    from acmestore.core.query import Query

log = logging.getLogger(__name__)


class AccountStore:
    def __init__(self, repository: AccountRepository) -> None:
        self._repo = repository

    def check_keypair(self, query: Query | Mapping[str, Any]) -> dict[str, Any] | None:
        keypair = self._repo.resolve_keypair(query)
        return keypair.to_document() if keypair else None

    def set_keypair(
        self,
        query: Query | Mapping[str, Any],
        keypair: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        account = self._repo.upsert_keypair(query, keypair)
        return account.to_document() if account else None

    def check(self, query: Query | Mapping[str, Any]) -> dict[str, Any] | None:
        account = self._repo.resolve_account(query)
        return account.to_document() if account else None

    def set(
        self,
        query: Query | Mapping[str, Any],
        registration: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        account = self._repo.upsert_account(query, registration)
        return account.to_document() if account else None


class CertificateStore:
    def __init__(self, repository: CertificateRepository) -> None:
        self._repo = repository

    def check_keypair(self, query: Query | Mapping[str, Any]) -> dict[str, Any] | None:
        keypair = self._repo.resolve_keypair(query)
        return keypair.to_document() if keypair else None

    def set_keypair(
        self,
        query: Query | Mapping[str, Any],
        keypair: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        record = self._repo.upsert_keypair(query, keypair)
        return record.to_document() if record else None

    def check(self, query: Query | Mapping[str, Any]) -> dict[str, Any] | None:
        record = self._repo.resolve_certificate(query)
        return record.to_document() if record else None

    def set(
        self,
        query: Query | Mapping[str, Any],
        certs: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        record = self._repo.upsert_certificate(query, certs)
        return record.to_document() if record else None


class Store:
    """Both record kinds over one :class:`RecordStore`.

    ``error`` holds the :class:`SetupError` raised while connecting, if
    any; operations on a store that failed to connect return ``None``.
    """

    def __init__(
        self,
        record_store: RecordStore,
        options: Mapping[str, Any] | None = None,
        error: SetupError | None = None,
    ) -> None:
        self.record_store = record_store
        self.error = error
        self._options = dict(options or {})
        self.accounts = AccountStore(AccountRepository(record_store))
        self.certificates = CertificateStore(CertificateRepository(record_store))

    def get_options(self) -> dict[str, Any]:
        return copy.deepcopy(self._options)

    def close(self) -> None:
        self.record_store.close()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_store(
    options: AcmestoreConfig | Mapping[str, Any] | None = None,
    *,
    connect: bool = True,
    client: MongoClient | None = None,
) -> Store:
    """Build a :class:`Store` from a config object or raw options mapping.

    With *connect* (the default) connection and index setup run now; a
    failure is logged and kept on :attr:`Store.error` instead of being
    raised, so callers can decide whether a degraded store is fatal.
    Configuration errors still raise :class:`ConfigValidationError`.

    *client* reuses an existing :class:`MongoClient`; it is not closed
    by :meth:`Store.close`.
    """
    config = options if isinstance(options, AcmestoreConfig) else AcmestoreConfig(data=options)
    record_store = RecordStore(config.settings.store, client=client)

    error: SetupError | None = None
    if connect:
        try:
            record_store.open()
        except SetupError as exc:
            log.warning("Store created in degraded mode: %s", exc)
            error = exc

    return Store(record_store, options=config.data, error=error)
