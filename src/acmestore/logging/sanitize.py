"""Key material redaction for stored records.

Account and certificate documents carry private keys in a few known
fields (``privkey``, ``keypair.privateKeyPem``, ``keypair.privateKeyJwk``).
:func:`redact_record` replaces those with ``[REDACTED]`` before a record
is printed or logged.  Certificates, chains, public keys and the public
members of a JWK are left readable.
"""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

# Fields whose value is a private key PEM
_PRIVATE_PEM_FIELDS = frozenset({"privkey", "privateKeyPem"})
_PRIVATE_JWK_FIELD = "privateKeyJwk"

# RFC 7518 private members; the public ones stay for key identification
_JWK_PRIVATE_MEMBERS = frozenset({"d", "p", "q", "dp", "dq", "qi", "oth", "k"})

_PRIVATE_PEM_RE = re.compile(
    r"(-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----)"
    r"[\s\S]*?"
    r"(-----END (?:[A-Z0-9]+ )*PRIVATE KEY-----)",
)


def redact_private_pem(pem: str) -> str:
    """Blank out the body of every private key block in *pem*.

    The BEGIN/END markers survive so the key type stays visible.
    """
    return _PRIVATE_PEM_RE.sub(rf"\1\n{REDACTED}\n\2", pem)


def redact_jwk(jwk: dict) -> dict:
    return {k: REDACTED if k in _JWK_PRIVATE_MEMBERS else v for k, v in jwk.items()}


def _redact_field(key: str, value: Any) -> Any:  # noqa: ANN401
    if value is None:
        return None
    if key in _PRIVATE_PEM_FIELDS:
        if isinstance(value, str) and _PRIVATE_PEM_RE.search(value):
            return redact_private_pem(value)
        return REDACTED
    if key == _PRIVATE_JWK_FIELD and isinstance(value, dict):
        return redact_jwk(value)
    return redact_record(value)


def redact_record(data: Any) -> Any:  # noqa: ANN401
    """Return a copy of *data* with private key material redacted.

    Walks nested documents and lists.  A private key PEM found under an
    unexpected field name is redacted as well.
    """
    if isinstance(data, dict):
        return {key: _redact_field(key, value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return type(data)(redact_record(item) for item in data)
    if isinstance(data, str) and "PRIVATE KEY-----" in data:
        return redact_private_pem(data)
    return data
