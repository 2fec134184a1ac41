"""End-to-end tests for the acmestore.Store facade on the memory backend."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from acmestore import Store, create_store
from acmestore.config import AcmestoreConfig, ConfigValidationError
from acmestore.errors import SetupError


@pytest.fixture
def store(memory_config_data):
    s = create_store(memory_config_data)
    yield s
    s.close()


class TestScenarios:
    def test_account_keypair_by_email(self, store):
        store.accounts.set_keypair({"email": "a@x.com"}, {"privateKeyPem": "K1"})

        keypair = store.accounts.check_keypair({"email": "a@x.com"})
        assert keypair["privateKeyPem"] == "K1"
        assert store.accounts.check_keypair({"email": "b@x.com"}) is None

    def test_certificate_by_altname(self, store):
        store.certificates.set(
            {"domains": ["example.com", "www.example.com"]},
            {"domains": ["example.com", "www.example.com"], "cert": "C1"},
        )

        record = store.certificates.check({"domains": ["www.example.com"]})
        assert record["cert"] == "C1"
        assert record["domains"] == ["example.com", "www.example.com"]


class TestAccounts:
    def test_registration_then_lookup_by_account_id(self, store):
        created = store.accounts.set({"email": "a@x.com"}, {"agreeTos": True, "receipt": "R"})

        found = store.accounts.check({"accountId": created["id"]})
        assert found["email"] == "a@x.com"
        assert found["agreeTos"] is True
        assert found["created"] == created["created"]

    def test_check_not_found(self, store):
        assert store.accounts.check({"email": "nobody@x.com"}) is None


class TestCertificates:
    def test_certificate_keypair(self, store):
        store.certificates.set_keypair({"domains": ["a.test"]}, {"privateKeyPem": "K1"})
        assert store.certificates.check_keypair({"domains": ["a.test"]}) == {"privateKeyPem": "K1"}

    def test_set_returns_document(self, store):
        doc = store.certificates.set({"domains": ["a.test"]}, {"cert": "C1", "privkey": "P1"})
        assert doc["id"]
        assert doc["domains"] == ["a.test"]
        assert doc["privkey"] == "P1"


class TestCreateStore:
    def test_defaults_without_connect(self):
        s = create_store(connect=False)
        assert s.error is None
        assert s.record_store.settings.backend == "mongodb"
        assert not s.record_store.available

    def test_accepts_config_object(self, memory_config_data):
        config = AcmestoreConfig(data=memory_config_data)
        with create_store(config) as s:
            assert s.record_store.available
            assert s.get_options()["store"]["backend"] == "memory"

    def test_get_options_is_a_copy(self, store):
        store.get_options()["store"]["backend"] = "mongodb"
        assert store.get_options()["store"]["backend"] == "memory"

    def test_invalid_options_raise(self):
        with pytest.raises(ConfigValidationError):
            create_store({"store": {"backend": "redis"}})

    @patch("acmestore.db.record_store.MongoDatabase")
    def test_connection_failure_degrades(self, mock_db_cls):
        mock_db_cls.return_value.connect.side_effect = ConnectionError("refused")

        s = create_store({"store": {"url": "mongodb://unreachable:27017/le"}})

        assert isinstance(s, Store)
        assert isinstance(s.error, SetupError)
        assert s.accounts.check({"email": "a@x.com"}) is None
        assert s.certificates.set({"domains": ["a.test"]}, {"cert": "C1"}) is None

    @patch("acmestore.db.record_store.MongoDatabase")
    def test_client_is_passed_to_backend(self, mock_db_cls):
        client = object()
        s = create_store({"store": {"database": "le"}}, client=client)

        assert s.error is None
        assert mock_db_cls.call_args.kwargs["client"] is client


class TestCallerIdentifiers:
    def test_id_and_account_id_are_ignored(self, store):
        opts = {
            "accountId": "_account_id",
            "id": "__account_id",
            "email": "john.doe@gmail.com",
            "agreeTos": "TOS_URL",
        }
        keypair = {"privateKeyJwk": {}, "privateKeyPem": "PEM2", "publicKeyPem": "PUBPEM2"}

        assert store.accounts.set_keypair(opts, keypair) is not None
        account = store.accounts.set(opts, {"keypair": keypair, "receipt": {}, "agreeTos": "TOS_URL"})

        assert account["id"] not in ("_account_id", "__account_id")
        assert account["email"] == "john.doe@gmail.com"
        assert account["agreeTos"] == "TOS_URL"
        assert account["keypair"]["privateKeyPem"] == "PEM2"
        assert store.accounts.check({"email": "john.doe@gmail.com"})["id"] == account["id"]

    def test_certificate_found_by_query_email(self, store):
        store.certificates.set(
            {"domains": ["example.com", "www.example.com"], "email": "goodguy@gmail.com"},
            {"cert": "CERT_A.PEM", "privkey": "PRIVKEY_A.PEM", "chain": "CHAIN_A.PEM"},
        )
        assert store.certificates.check({"email": "goodguy@gmail.com"})["privkey"] == "PRIVKEY_A.PEM"
