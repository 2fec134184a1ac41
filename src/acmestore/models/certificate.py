"""Certificate record entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from acmestore.models.account import Keypair

_EPOCH = datetime(1970, 1, 1)

# document key -> attribute name, for plain optional fields
_SIMPLE_FIELDS = {
    "email": "email",
    "accountId": "account_id",
    "cert": "cert",
    "privkey": "privkey",
    "chain": "chain",
    "subject": "subject",
    "issuedAt": "issued_at",
    "expiresAt": "expires_at",
}

_KNOWN_FIELDS = frozenset(
    {"_id", "id", "domains", "altnames", "keypair", "created", "updated", *_SIMPLE_FIELDS},
)


@dataclass(frozen=True)
class CertificateRecord:
    id: str
    domains: tuple[str, ...] = ()
    email: str | None = None
    account_id: str | None = None
    cert: str | None = None
    privkey: str | None = None
    chain: str | None = None
    subject: str | None = None
    altnames: tuple[str, ...] = ()
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    keypair: Keypair | None = None
    extra: dict = field(default_factory=dict)
    created: datetime = _EPOCH
    updated: datetime = _EPOCH

    def covers(self, domain: str) -> bool:
        """Return True if *domain* is in this record's domain set."""
        return domain.strip().lower() in self.domains

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> CertificateRecord:
        simple = {attr: doc.get(key) for key, attr in _SIMPLE_FIELDS.items()}
        return cls(
            id=doc["id"],
            domains=tuple(doc.get("domains") or ()),
            altnames=tuple(doc.get("altnames") or ()),
            keypair=Keypair.from_document(doc.get("keypair")),
            extra={k: v for k, v in doc.items() if k not in _KNOWN_FIELDS},
            created=doc.get("created", _EPOCH),
            updated=doc.get("updated", _EPOCH),
            **simple,
        )

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = dict(self.extra)
        doc["id"] = self.id
        doc["domains"] = list(self.domains)
        if self.altnames:
            doc["altnames"] = list(self.altnames)
        for key, attr in _SIMPLE_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                doc[key] = value
        if self.keypair is not None:
            doc["keypair"] = self.keypair.to_document()
        doc["created"] = self.created
        doc["updated"] = self.updated
        return doc
