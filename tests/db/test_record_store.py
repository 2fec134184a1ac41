"""Tests for acmestore.db.record_store: one-shot setup and degradation."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import pytest

from acmestore.collections import MemoryDatabase
from acmestore.core.types import INDEXED_FIELDS, RecordKind
from acmestore.db import RecordStore, init_store
from acmestore.db.record_store import make_backend
from acmestore.errors import SetupError, StoreUnavailableError


class _CountingBackend(MemoryDatabase):
    """MemoryDatabase that counts connects and can be slowed down."""

    def __init__(self, gate: threading.Event | None = None) -> None:
        super().__init__()
        self.connects = 0
        self._gate = gate

    def connect(self) -> None:
        self.connects += 1
        if self._gate is not None:
            self._gate.wait(timeout=5)
        super().connect()


class _Interrupted(BaseException):
    pass


class TestMakeBackend:
    def test_memory(self, memory_settings):
        assert isinstance(make_backend(memory_settings), MemoryDatabase)

    def test_mongodb(self):
        from acmestore.collections import MongoDatabase
        from acmestore.config.settings import _build_store

        assert isinstance(make_backend(_build_store({})), MongoDatabase)

    @patch("acmestore.collections.mongo.MongoClient")
    def test_mongodb_with_client(self, mock_client_cls):
        from acmestore.config.settings import _build_store

        client = MagicMock()
        store = RecordStore(_build_store({}), client=client)
        store.open()
        store.close()

        mock_client_cls.assert_not_called()
        client.admin.command.assert_called_once_with("ping")
        client.close.assert_not_called()


class TestSetup:
    def test_open_creates_indexes(self, memory_settings):
        store = RecordStore(memory_settings)
        store.open()

        for kind in RecordKind:
            assert store.collection(kind).indexes == frozenset(INDEXED_FIELDS)
        assert store.available
        store.close()

    def test_collection_names(self, memory_settings):
        with RecordStore(memory_settings) as store:
            assert store.collection(RecordKind.ACCOUNT).name == "accounts"
            assert store.collection(RecordKind.CERTIFICATE).name == "certificates"

    def test_collection_triggers_setup_lazily(self, memory_settings):
        backend = _CountingBackend()
        store = RecordStore(memory_settings, backend=backend)
        assert not store.available

        assert store.collection(RecordKind.ACCOUNT) is not None
        assert backend.connects == 1

    def test_setup_runs_once_under_concurrency(self, memory_settings):
        gate = threading.Event()
        backend = _CountingBackend(gate)
        store = RecordStore(memory_settings, backend=backend)
        results = []

        def worker():
            results.append(store.collection(RecordKind.CERTIFICATE))

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        gate.set()
        for t in threads:
            t.join()

        assert backend.connects == 1
        assert len(results) == 6
        assert all(r is results[0] for r in results)

    def test_close_allows_reopen(self, memory_settings):
        backend = _CountingBackend()
        store = RecordStore(memory_settings, backend=backend)
        store.open()
        store.close()
        assert not store.available

        store.open()
        assert backend.connects == 2


class TestConnectionFailure:
    def _failing_store(self, memory_settings):
        backend = MagicMock()
        backend.connect.side_effect = ConnectionError("refused")
        return RecordStore(memory_settings, backend=backend), backend

    def test_open_raises_setup_error(self, memory_settings):
        store, _ = self._failing_store(memory_settings)
        with pytest.raises(SetupError) as excinfo:
            store.open()
        assert excinfo.value.errors == ["connection failed: refused"]

    def test_collection_returns_none(self, memory_settings):
        store, backend = self._failing_store(memory_settings)
        assert store.collection(RecordKind.ACCOUNT) is None
        assert store.collection(RecordKind.CERTIFICATE) is None
        assert not store.available
        # the failure is remembered, not retried
        backend.connect.assert_called_once()

    def test_require_raises(self, memory_settings):
        store, _ = self._failing_store(memory_settings)
        with pytest.raises(StoreUnavailableError, match="account"):
            store.require(RecordKind.ACCOUNT)

    def test_unexpected_error_is_wrapped(self, memory_settings):
        backend = MagicMock()
        backend.collection.side_effect = KeyError("boom")
        store = RecordStore(memory_settings, backend=backend)

        with pytest.raises(SetupError, match="unexpected setup failure"):
            store.open()
        assert store.collection(RecordKind.ACCOUNT) is None

    def test_interrupted_setup_still_resolves(self, memory_settings):
        backend = MagicMock()
        backend.connect.side_effect = _Interrupted()
        store = RecordStore(memory_settings, backend=backend)

        with pytest.raises(_Interrupted):
            store.open()

        # later callers see the failure instead of waiting forever
        assert store.collection(RecordKind.ACCOUNT) is None
        with pytest.raises(SetupError, match="setup interrupted"):
            store.open()
        backend.connect.assert_called_once()


class TestIndexFailure:
    def _store(self, memory_settings):
        backend = MemoryDatabase()
        original = backend.collection

        def collection(name):
            coll = original(name)
            if name == "certificates":
                coll.ensure_index = MagicMock(side_effect=RuntimeError("index build failed"))
            return coll

        backend.collection = collection
        return RecordStore(memory_settings, backend=backend)

    def test_open_lists_every_failed_index(self, memory_settings):
        store = self._store(memory_settings)
        with pytest.raises(SetupError) as excinfo:
            store.open()

        assert len(excinfo.value.errors) == len(INDEXED_FIELDS)
        assert excinfo.value.errors[0] == "index certificates.id: index build failed"

    def test_collections_remain_usable(self, memory_settings):
        store = self._store(memory_settings)
        with pytest.raises(SetupError):
            store.open()

        coll = store.require(RecordKind.CERTIFICATE)
        coll.upsert({"id": "c1"}, {"cert": "C1"})
        assert coll.find_one({"id": "c1"})["cert"] == "C1"
        assert store.available


class TestInitStore:
    def test_connects_by_default(self, memory_settings):
        store = init_store(memory_settings)
        assert store.available
        store.close()

    def test_deferred_connect(self, memory_settings):
        store = init_store(memory_settings, connect=False)
        assert not store.available

    def test_passes_client(self):
        from acmestore.config.settings import _build_store

        client = MagicMock()
        store = init_store(_build_store({}), client=client)

        assert store.available
        client.__getitem__.assert_called_once_with("greenlock")
        store.close()
        client.close.assert_not_called()
