"""PEM and JWK helpers used to enrich stored records.

Stored PEM strings stay opaque: these helpers only *derive* extra
fields (subject, SANs, validity window, public key, JWK thumbprint)
and return ``None`` when the input does not parse, so a malformed
certificate never blocks a write.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

log = logging.getLogger(__name__)


def _b64url_encode(b: bytes) -> str:
    """Encode bytes to base64url without padding."""
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode("ascii")


def _san_dns_names(cert: x509.Certificate) -> list[str]:
    try:
        san_ext = cert.extensions.get_extension_for_class(
            x509.SubjectAlternativeName,
        )
    except x509.ExtensionNotFound:
        return []
    return [name.lower() for name in san_ext.value.get_values_for_type(x509.DNSName)]


def certificate_metadata(pem: str) -> dict[str, Any] | None:
    """Extract lookup metadata from the leaf certificate in *pem*.

    Returns a dict with ``subject`` (the CN, or the first SAN when the
    subject carries no CN), ``altnames`` (lower-cased SAN DNS names,
    subject first) and ``issuedAt`` / ``expiresAt`` as aware UTC
    datetimes.  Returns ``None`` if *pem* is not a parseable certificate.
    """
    try:
        cert = x509.load_pem_x509_certificate(pem.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as exc:
        log.debug("Certificate PEM did not parse: %s", exc)
        return None

    altnames = _san_dns_names(cert)
    cn_attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    subject = str(cn_attrs[0].value).lower() if cn_attrs else None
    if subject is None and altnames:
        subject = altnames[0]
    if subject is not None:
        altnames = [subject] + [name for name in altnames if name != subject]

    return {
        "subject": subject,
        "altnames": altnames,
        "issuedAt": cert.not_valid_before_utc,
        "expiresAt": cert.not_valid_after_utc,
    }


def public_key_pem(private_key_pem: str) -> str | None:
    """Derive the SubjectPublicKeyInfo PEM from an unencrypted private key."""
    try:
        key = serialization.load_pem_private_key(
            private_key_pem.encode("ascii"),
            password=None,
        )
    except (ValueError, TypeError, UnicodeEncodeError) as exc:
        log.debug("Private key PEM did not parse: %s", exc)
        return None
    return (
        key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )


def jwk_thumbprint(jwk_dict: dict[str, Any]) -> str | None:
    """Compute the RFC 7638 JWK Thumbprint (SHA-256, base64url).

    Returns ``None`` for key types other than RSA and EC or when a
    required member is missing.
    """
    kty = jwk_dict.get("kty")
    try:
        if kty == "RSA":
            canonical = {"e": jwk_dict["e"], "kty": "RSA", "n": jwk_dict["n"]}
        elif kty == "EC":
            canonical = {
                "crv": jwk_dict["crv"],
                "kty": "EC",
                "x": jwk_dict["x"],
                "y": jwk_dict["y"],
            }
        else:
            return None
    except KeyError:
        return None

    # RFC 7638: lexicographic member order, no whitespace
    canonical_json = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(canonical_json.encode("ascii")).digest()
    return _b64url_encode(digest)


def enrich_keypair(fields: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of keypair *fields* with derivable members filled in.

    Adds ``publicKeyPem`` from ``privateKeyPem`` and ``thumbprint`` from
    ``privateKeyJwk`` when the caller did not supply them.
    """
    enriched = dict(fields)
    private_pem = enriched.get("privateKeyPem")
    if isinstance(private_pem, str) and not enriched.get("publicKeyPem"):
        derived = public_key_pem(private_pem)
        if derived is not None:
            enriched["publicKeyPem"] = derived
    private_jwk = enriched.get("privateKeyJwk")
    if isinstance(private_jwk, dict) and not enriched.get("thumbprint"):
        thumbprint = jwk_thumbprint(private_jwk)
        if thumbprint is not None:
            enriched["thumbprint"] = thumbprint
    return enriched
