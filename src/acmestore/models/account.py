"""Account and Keypair entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Sentinel for timestamps not yet assigned by the store.
_EPOCH = datetime(1970, 1, 1)

_KEYPAIR_FIELDS = {
    "privateKeyPem": "private_key_pem",
    "privateKeyJwk": "private_key_jwk",
    "publicKeyPem": "public_key_pem",
    "thumbprint": "thumbprint",
}

_ACCOUNT_FIELDS = frozenset(
    {"_id", "id", "email", "keypair", "receipt", "agreeTos", "created", "updated"},
)


@dataclass(frozen=True)
class Keypair:
    private_key_pem: str | None = None
    private_key_jwk: dict | None = None
    public_key_pem: str | None = None
    thumbprint: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: dict[str, Any] | None) -> Keypair | None:
        if not doc:
            return None
        known = {attr: doc.get(key) for key, attr in _KEYPAIR_FIELDS.items()}
        extra = {k: v for k, v in doc.items() if k not in _KEYPAIR_FIELDS}
        return cls(**known, extra=extra)

    def to_document(self) -> dict[str, Any]:
        doc = dict(self.extra)
        for key, attr in _KEYPAIR_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                doc[key] = value
        return doc


@dataclass(frozen=True)
class Account:
    id: str
    email: str | None = None
    keypair: Keypair | None = None
    receipt: Any = None
    agree_tos: bool | None = None
    extra: dict = field(default_factory=dict)
    created: datetime = _EPOCH
    updated: datetime = _EPOCH

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Account:
        return cls(
            id=doc["id"],
            email=doc.get("email"),
            keypair=Keypair.from_document(doc.get("keypair")),
            receipt=doc.get("receipt"),
            agree_tos=doc.get("agreeTos"),
            extra={k: v for k, v in doc.items() if k not in _ACCOUNT_FIELDS},
            created=doc.get("created", _EPOCH),
            updated=doc.get("updated", _EPOCH),
        )

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = dict(self.extra)
        doc["id"] = self.id
        if self.email is not None:
            doc["email"] = self.email
        if self.keypair is not None:
            doc["keypair"] = self.keypair.to_document()
        if self.receipt is not None:
            doc["receipt"] = self.receipt
        if self.agree_tos is not None:
            doc["agreeTos"] = self.agree_tos
        doc["created"] = self.created
        doc["updated"] = self.updated
        return doc
