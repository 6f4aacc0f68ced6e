"""Key-value stores used for persistence."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import redis

from config import LedgerConfig, RedisConfig

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A storage backend could not be read or written."""


class KeyValueStore(ABC):
    """Abstract get/set-by-key store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get the value for a key, or None if unset."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Set the value for a key."""
        ...


class InMemoryStore(KeyValueStore):
    """In-memory store for tests and local play."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """All keys kept in a single JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self._path}")
        return data

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError:
            logger.warning("Overwriting unreadable store at %s", self._path)
            data = {}
        data[key] = value
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StorageError(f"Cannot write {self._path}: {exc}") from exc


class RedisStore(KeyValueStore):
    """Redis-backed store."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "casino:") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            data = self._redis.get(self._key(key))
        except redis.RedisError as exc:
            raise StorageError(str(exc)) from exc
        if data is None:
            return None
        if isinstance(data, bytes):
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise StorageError(f"Undecodable value under {self._key(key)}") from exc
        return data

    def set(self, key: str, value: str) -> None:
        try:
            self._redis.set(self._key(key), value)
        except redis.RedisError as exc:
            raise StorageError(str(exc)) from exc


def create_store(ledger_config: LedgerConfig, redis_config: RedisConfig) -> KeyValueStore:
    """
    Build the store named by the ledger configuration.

    Falls back to an in-memory store when Redis cannot be reached.
    """
    if ledger_config.backend == "file":
        return JsonFileStore(ledger_config.path)

    if ledger_config.backend == "redis":
        client = redis.Redis.from_url(redis_config.url)
        try:
            client.ping()
        except redis.RedisError as exc:
            logger.warning("Redis unavailable (%s), keeping ledger in memory", exc)
            return InMemoryStore()
        return RedisStore(client)

    return InMemoryStore()
