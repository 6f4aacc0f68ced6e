"""Tests for key-value stores."""

import pytest
from unittest.mock import MagicMock

import redis

from config import LedgerConfig, RedisConfig
from core.storage import (
    InMemoryStore,
    JsonFileStore,
    RedisStore,
    StorageError,
    create_store,
)


class TestJsonFileStore:
    def test_missing_file_reads_none(self, tmp_path):
        store = JsonFileStore(tmp_path / "ledger.json")
        assert store.get("key") is None

    def test_set_and_get(self, tmp_path):
        path = tmp_path / "nested" / "ledger.json"
        JsonFileStore(path).set("key", "value")
        assert JsonFileStore(path).get("key") == "value"
        assert not path.with_suffix(".json.tmp").exists()

    def test_keys_are_independent(self, tmp_path):
        store = JsonFileStore(tmp_path / "ledger.json")
        store.set("a", "1")
        store.set("b", "2")
        assert store.get("a") == "1"
        assert store.get("b") == "2"

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileStore(path).get("key")

    def test_set_overwrites_corrupt_file(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("[1, 2]", encoding="utf-8")
        store = JsonFileStore(path)
        store.set("key", "value")
        assert store.get("key") == "value"


class TestRedisStore:
    def test_prefixes_keys(self):
        client = MagicMock()
        client.get.return_value = b"stored"
        store = RedisStore(client)

        store.set("ledger", "data")
        assert store.get("ledger") == "stored"

        client.set.assert_called_once_with("casino:ledger", "data")
        client.get.assert_called_once_with("casino:ledger")

    def test_missing_key(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisStore(client).get("ledger") is None

    def test_undecodable_value_is_storage_error(self):
        client = MagicMock()
        client.get.return_value = b"\xff\xfe not utf-8"
        with pytest.raises(StorageError):
            RedisStore(client).get("ledger")

    def test_errors_are_wrapped(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("refused")
        client.set.side_effect = redis.ConnectionError("refused")
        store = RedisStore(client)

        with pytest.raises(StorageError):
            store.get("ledger")
        with pytest.raises(StorageError):
            store.set("ledger", "data")


class TestCreateStore:
    def test_memory_backend(self):
        store = create_store(LedgerConfig(backend="memory"), RedisConfig())
        assert isinstance(store, InMemoryStore)

    def test_file_backend(self, tmp_path):
        store = create_store(
            LedgerConfig(backend="file", path=str(tmp_path / "l.json")), RedisConfig()
        )
        assert isinstance(store, JsonFileStore)

    def test_unreachable_redis_falls_back_to_memory(self, monkeypatch):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        monkeypatch.setattr(redis.Redis, "from_url", MagicMock(return_value=client))

        store = create_store(LedgerConfig(backend="redis"), RedisConfig())
        assert isinstance(store, InMemoryStore)

    def test_reachable_redis(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(redis.Redis, "from_url", MagicMock(return_value=client))

        store = create_store(LedgerConfig(backend="redis"), RedisConfig())
        assert isinstance(store, RedisStore)
