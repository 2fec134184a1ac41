"""Root conftest for the acmestore test suite."""

from __future__ import annotations

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Config data
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_config_data() -> dict:
    """Return config data selecting the in-memory backend."""
    return {
        "store": {"backend": "memory"},
        "logging": {"level": "DEBUG", "format": "text"},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, memory_config_data: dict) -> Path:
    """Write *memory_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(memory_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


@pytest.fixture(autouse=True)
def fresh_config():
    """Reset the AcmestoreConfig singleton before and after every test."""
    from acmestore.config.acmestore_config import AcmestoreConfig

    AcmestoreConfig.reset()
    yield
    AcmestoreConfig.reset()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_settings():
    from acmestore.config.settings import _build_store

    return _build_store({"backend": "memory"})


@pytest.fixture()
def record_store(memory_settings):
    from acmestore.db.record_store import RecordStore

    store = RecordStore(memory_settings)
    store.open()
    yield store
    store.close()


@pytest.fixture()
def account_repo(record_store):
    from acmestore.repositories import AccountRepository

    return AccountRepository(record_store)


@pytest.fixture()
def certificate_repo(record_store):
    from acmestore.repositories import CertificateRepository

    return CertificateRepository(record_store)


# ---------------------------------------------------------------------------
# Key and certificate material
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def ec_key_pem() -> str:
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import ec

    key = ec.generate_private_key(ec.SECP256R1())
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def make_cert_pem():
    """Return a factory for self-signed certificates covering *names*."""
    from cryptography import x509
    from cryptography.hazmat.primitives import hashes, serialization
    from cryptography.hazmat.primitives.asymmetric import ec
    from cryptography.x509.oid import NameOID

    key = ec.generate_private_key(ec.SECP256R1())

    def _make(names: list[str], *, common_name: str | None = None, days: int = 90) -> str:
        now = datetime.now(UTC).replace(microsecond=0)
        subject_attrs = []
        if common_name is not None:
            subject_attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
        name = x509.Name(subject_attrs)
        cert = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "test issuer")]))
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(minutes=1))
            .not_valid_after(now + timedelta(days=days))
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName(n) for n in names]),
                critical=False,
            )
            .sign(key, hashes.SHA256())
        )
        return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")

    return _make
