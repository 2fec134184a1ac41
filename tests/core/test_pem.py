"""Unit tests for acmestore.core.pem: certificate and key helpers."""

from __future__ import annotations

from datetime import UTC, datetime

from acmestore.core.pem import (
    certificate_metadata,
    enrich_keypair,
    jwk_thumbprint,
    public_key_pem,
)

# RFC 7638 section 3.1 example key and its expected thumbprint.
_RFC7638_JWK = {
    "kty": "RSA",
    "n": (
        "0vx7agoebGcQSuuPiLJXZptN9nndrQmbXEps2aiAFbWhM78LhWx4cbbfAAtVT86zwu1RK7aPFFxuhDR1L6tSoc_"
        "BJECPebWKRXjBZCiFV4n3oknjhMstn64tZ_2W-5JsGY4Hc5n9yBXArwl93lqt7_RN5w6Cf0h4QyQ5v-65YGjQR0_"
        "FDW2QvzqY368QQMicAtaSqzs8KJZgnYb9c7d0zgdAZHzu6qMQvRL5hajrn1n91CbOpbISD08qNLyrdkt-bFTWhAI4"
        "vMQFh6WeZu0fM4lFd2NcRwr3XPksINHaQ-G_xBniIqbw0Ls1jF44-csFCur-kEgU8awapJzKnqDKgw"
    ),
    "e": "AQAB",
    "alg": "RS256",
    "kid": "2011-04-29",
}
_RFC7638_THUMBPRINT = "NzbLsXh8uDCcd-6MNwXF4W_7noWXFZAfHkxZsRGC9Xs"


class TestCertificateMetadata:
    def test_extracts_subject_and_altnames(self, make_cert_pem):
        pem = make_cert_pem(["www.example.com", "example.com"], common_name="example.com")
        meta = certificate_metadata(pem)

        assert meta is not None
        assert meta["subject"] == "example.com"
        # subject first, then the remaining SANs in order
        assert meta["altnames"] == ["example.com", "www.example.com"]

    def test_subject_falls_back_to_first_san(self, make_cert_pem):
        meta = certificate_metadata(make_cert_pem(["a.test", "b.test"]))
        assert meta["subject"] == "a.test"
        assert meta["altnames"] == ["a.test", "b.test"]

    def test_validity_window_is_utc(self, make_cert_pem):
        meta = certificate_metadata(make_cert_pem(["a.test"], days=30))
        assert meta["issuedAt"].tzinfo is not None
        assert meta["issuedAt"] <= datetime.now(UTC) < meta["expiresAt"]

    def test_lowercases_names(self, make_cert_pem):
        meta = certificate_metadata(make_cert_pem(["WWW.Example.COM"]))
        assert meta["altnames"] == ["www.example.com"]

    def test_garbage_returns_none(self):
        assert certificate_metadata("not a certificate") is None

    def test_opaque_placeholder_returns_none(self):
        assert certificate_metadata("C1") is None


class TestPublicKeyPem:
    def test_derives_public_key(self, ec_key_pem):
        result = public_key_pem(ec_key_pem)
        assert result is not None
        assert result.startswith("-----BEGIN PUBLIC KEY-----")

    def test_invalid_returns_none(self):
        assert public_key_pem("K1") is None


class TestJwkThumbprint:
    def test_rfc7638_example(self):
        assert jwk_thumbprint(_RFC7638_JWK) == _RFC7638_THUMBPRINT

    def test_unsupported_kty(self):
        assert jwk_thumbprint({"kty": "oct", "k": "abc"}) is None

    def test_missing_member(self):
        assert jwk_thumbprint({"kty": "EC", "crv": "P-256", "x": "abc"}) is None


class TestEnrichKeypair:
    def test_adds_public_key(self, ec_key_pem):
        result = enrich_keypair({"privateKeyPem": ec_key_pem})
        assert result["privateKeyPem"] == ec_key_pem
        assert result["publicKeyPem"].startswith("-----BEGIN PUBLIC KEY-----")

    def test_keeps_caller_public_key(self, ec_key_pem):
        result = enrich_keypair({"privateKeyPem": ec_key_pem, "publicKeyPem": "PUB"})
        assert result["publicKeyPem"] == "PUB"

    def test_adds_thumbprint_from_jwk(self):
        result = enrich_keypair({"privateKeyJwk": _RFC7638_JWK})
        assert result["thumbprint"] == _RFC7638_THUMBPRINT

    def test_opaque_values_left_alone(self):
        assert enrich_keypair({"privateKeyPem": "K1"}) == {"privateKeyPem": "K1"}

    def test_does_not_mutate_input(self, ec_key_pem):
        fields = {"privateKeyPem": ec_key_pem}
        enrich_keypair(fields)
        assert fields == {"privateKeyPem": ec_key_pem}
