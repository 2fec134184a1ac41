"""Certificate repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from acmestore.core.pem import certificate_metadata, enrich_keypair
from acmestore.core.query import (
    CERTIFICATE_PRECEDENCE,
    ByAccountId,
    ByDomains,
    normalize_domains,
)
from acmestore.core.types import FIELD_ACCOUNT_ID, FIELD_DOMAINS, FIELD_KEYPAIR, RecordKind
from acmestore.models.account import Keypair
from acmestore.models.certificate import CertificateRecord
from acmestore.repositories.base import BaseRepository

if TYPE_CHECKING:
    from collections.abc import Mapping

    from acmestore.core.query import Query
    from acmestore.db.record_store import RecordStore

log = logging.getLogger(__name__)


class CertificateRepository(BaseRepository):
    kind = RecordKind.CERTIFICATE
    precedence = CERTIFICATE_PRECEDENCE

    def __init__(self, store: RecordStore, *, exclusive_domains: bool | None = None) -> None:
        super().__init__(store)
        if exclusive_domains is None:
            exclusive_domains = store.settings.exclusive_domains
        self._exclusive_domains = exclusive_domains

    def resolve_certificate(
        self,
        query: Query | Mapping[str, Any],
    ) -> CertificateRecord | None:
        """Find a certificate by id, any of its domains, accountId or email."""
        doc = self.find_document(query)
        return CertificateRecord.from_document(doc) if doc else None

    def resolve_keypair(self, query: Query | Mapping[str, Any]) -> Keypair | None:
        """Return the certificate's keypair.

        Falls back to the stored ``privkey`` when no keypair was set
        explicitly.
        """
        record = self.resolve_certificate(query)
        if record is None:
            return None
        if record.keypair is not None:
            return record.keypair
        if record.privkey:
            return Keypair(private_key_pem=record.privkey)
        return None

    def _seed(self, query: Query) -> dict[str, Any]:
        # accountId on a certificate is the owning account, not an identity.
        if isinstance(query, ByAccountId):
            return {FIELD_ACCOUNT_ID: query.account_id}
        return super()._seed(query)

    def upsert_certificate(
        self,
        query: Query | Mapping[str, Any],
        cert_fields: Mapping[str, Any],
    ) -> CertificateRecord | None:
        """Merge ``cert`` / ``privkey`` / ``chain`` (and friends) into the record.

        When ``cert`` parses, ``subject``, ``altnames``, ``issuedAt`` and
        ``expiresAt`` are derived from it, and ``domains`` default to its
        names.  A new record starts with the query's ``domains``,
        ``email`` and ``accountId`` unless the payload sets them.
        """
        candidates = self.candidates(query)
        fields = self.strip_protected(cert_fields)

        if FIELD_DOMAINS in fields:
            fields[FIELD_DOMAINS] = list(normalize_domains(fields[FIELD_DOMAINS] or ()))

        cert_pem = fields.get("cert")
        if isinstance(cert_pem, str):
            meta = certificate_metadata(cert_pem)
            if meta is not None:
                for key, value in meta.items():
                    if value is not None:
                        fields.setdefault(key, value)
                if FIELD_DOMAINS not in fields and meta["altnames"]:
                    fields[FIELD_DOMAINS] = list(meta["altnames"])

        doc = self.upsert_document(query, fields)
        if doc is None:
            return None

        by_domains = any(isinstance(c, ByDomains) for c in candidates)
        if self._exclusive_domains and (FIELD_DOMAINS in fields or by_domains):
            self._release_domains(doc)
        return CertificateRecord.from_document(doc)

    def upsert_keypair(
        self,
        query: Query | Mapping[str, Any],
        keypair_fields: Mapping[str, Any],
    ) -> CertificateRecord | None:
        """Merge *keypair_fields* under the certificate's ``keypair``."""
        keypair = enrich_keypair(dict(keypair_fields))
        fields = {f"{FIELD_KEYPAIR}.{key}": value for key, value in keypair.items()}
        doc = self.upsert_document(query, fields)
        return CertificateRecord.from_document(doc) if doc else None

    def _release_domains(self, doc: dict[str, Any]) -> None:
        """Take *doc*'s domains away from every other record (last writer wins)."""
        domains = doc.get(FIELD_DOMAINS) or []
        coll = self._collection()
        if not domains or coll is None:
            return
        released = coll.release(FIELD_DOMAINS, list(domains), doc["id"])
        if released:
            log.info(
                "Reassigned domains %s to certificate %s (%d other record(s) updated)",
                domains,
                doc["id"],
                released,
                extra=self._log_context(coll, doc),
            )
