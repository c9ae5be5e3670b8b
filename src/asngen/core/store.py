"""Transactional key-value store used for counters, metadata and statistics.

Every write goes through an `AtomicOperation`: entries read earlier can be
checked, and the commit only succeeds if none of them changed since they
were read. `perform_atomic_transaction` wraps the read-compute-commit cycle
and retries it until it commits.

Keys are tuples, e.g. `("namespace", 123)` or `("metadata", 123, 42)`.
Values must be JSON-compatible.
"""

from __future__ import annotations

import asyncio
import json
import random
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import urlparse
from uuid import uuid4

import structlog
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from asngen.errors import StoreBusyError, TransactionRetriesExhaustedError

if TYPE_CHECKING:
    from asngen.config import Config

logger = structlog.get_logger(__name__)

KvKey = tuple[str | int, ...]


@dataclass(frozen=True)
class KvEntry:
    """Result of a read. `versionstamp` is None if the key does not exist."""

    key: KvKey
    value: Any
    versionstamp: str | None


class AtomicOperation:
    """Builder for a conditional multi-key commit."""

    def __init__(self, store: KvStore) -> None:
        self._store = store
        self._checks: list[KvEntry] = []
        self._mutations: list[tuple[KvKey, Any]] = []

    def check(self, *entries: KvEntry) -> Self:
        """Fail the commit if any of these entries changed since they were read."""
        self._checks.extend(entries)
        return self

    def set(self, key: KvKey, value: Any) -> Self:
        self._mutations.append((key, value))
        return self

    async def commit(self) -> bool:
        """Apply all mutations if every check holds. Returns False on a conflict."""
        return await self._store.commit_atomic(self._checks, self._mutations)


class KvStore(ABC):
    """Base class for key-value store backends."""

    @abstractmethod
    async def get(self, key: KvKey) -> KvEntry:
        """Read the current value and versionstamp of a key."""

    @abstractmethod
    async def commit_atomic(self, checks: list[KvEntry], mutations: list[tuple[KvKey, Any]]) -> bool:
        """Apply mutations atomically if all checks hold.

        Returns False when a check failed. Raises StoreBusyError when the
        backend is temporarily locked; other errors propagate unchanged.
        """

    def atomic(self) -> AtomicOperation:
        return AtomicOperation(self)

    async def set(self, key: KvKey, value: Any) -> None:
        """Unconditionally write a value."""
        await self.atomic().set(key, value).commit()

    async def close(self) -> None:
        """Release backend resources."""


def encode_key(key: KvKey) -> str:
    return json.dumps(list(key), separators=(",", ":"))


def new_versionstamp() -> str:
    return uuid4().hex


class MemoryKvStore(KvStore):
    """In-process store, used for tests and ephemeral deployments.

    Commits contain no suspension points, so they are atomic with respect
    to other coroutines on the same event loop.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, str]] = {}  # encoded key -> (json value, versionstamp)

    async def get(self, key: KvKey) -> KvEntry:
        item = self._data.get(encode_key(key))
        if item is None:
            return KvEntry(key, None, None)
        return KvEntry(key, json.loads(item[0]), item[1])

    async def commit_atomic(self, checks: list[KvEntry], mutations: list[tuple[KvKey, Any]]) -> bool:
        for entry in checks:
            item = self._data.get(encode_key(entry.key))
            if (item[1] if item else None) != entry.versionstamp:
                return False

        versionstamp = new_versionstamp()
        encoded = [(encode_key(key), json.dumps(value)) for key, value in mutations]
        for key, value in encoded:
            self._data[key] = (value, versionstamp)
        return True


class SqliteKvStore(KvStore):
    """Single-file store for local deployments.

    Commits use `BEGIN IMMEDIATE`, so concurrent writers from other processes
    surface as "database is locked", which is reported as StoreBusyError.
    Blocking calls run in a worker thread.
    """

    def __init__(self, path: Path, busy_timeout: float = 0.1) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, timeout=busy_timeout, isolation_level=None, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL, versionstamp TEXT NOT NULL)"
        )

    async def get(self, key: KvKey) -> KvEntry:
        return await asyncio.to_thread(self._get, key)

    async def commit_atomic(self, checks: list[KvEntry], mutations: list[tuple[KvKey, Any]]) -> bool:
        return await asyncio.to_thread(self._commit, checks, mutations)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)

    def _get(self, key: KvKey) -> KvEntry:
        with self._lock:
            row = self._conn.execute("SELECT value, versionstamp FROM kv WHERE key = ?", (encode_key(key),)).fetchone()
        if row is None:
            return KvEntry(key, None, None)
        return KvEntry(key, json.loads(row[0]), row[1])

    def _commit(self, checks: list[KvEntry], mutations: list[tuple[KvKey, Any]]) -> bool:
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
                for entry in checks:
                    row = self._conn.execute(
                        "SELECT versionstamp FROM kv WHERE key = ?", (encode_key(entry.key),)
                    ).fetchone()
                    if (row[0] if row else None) != entry.versionstamp:
                        self._conn.execute("ROLLBACK")
                        return False

                versionstamp = new_versionstamp()
                for key, value in mutations:
                    self._conn.execute(
                        "INSERT INTO kv (key, value, versionstamp) VALUES (?, ?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, versionstamp = excluded.versionstamp",
                        (encode_key(key), json.dumps(value), versionstamp),
                    )
                self._conn.execute("COMMIT")
            except sqlite3.OperationalError as e:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                if "locked" in str(e) or "busy" in str(e):
                    raise StoreBusyError(str(e)) from e
                raise
        return True


class _CheckFailedError(Exception):
    pass


class MongoKvStore(KvStore):
    """Store backed by a MongoDB replica set, shared by several instances.

    Commits run in a multi-document transaction. Write conflicts carry the
    `TransientTransactionError` label and are reported as StoreBusyError.
    """

    def __init__(self, database_url: str) -> None:
        self.mongo_client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(database_url)
        database_name = urlparse(database_url).path[1:] or "asngen"
        self._collection = self.mongo_client.get_database(database_name).get_collection("kv")

    async def get(self, key: KvKey) -> KvEntry:
        doc = await self._collection.find_one({"_id": encode_key(key)})
        if doc is None:
            return KvEntry(key, None, None)
        return KvEntry(key, doc["value"], doc["versionstamp"])

    async def commit_atomic(self, checks: list[KvEntry], mutations: list[tuple[KvKey, Any]]) -> bool:
        versionstamp = new_versionstamp()
        try:
            async with self.mongo_client.start_session() as session:
                async with await session.start_transaction():
                    for entry in checks:
                        doc = await self._collection.find_one({"_id": encode_key(entry.key)}, session=session)
                        if (doc["versionstamp"] if doc else None) != entry.versionstamp:
                            raise _CheckFailedError
                    for key, value in mutations:
                        await self._collection.replace_one(
                            {"_id": encode_key(key)},
                            {"value": value, "versionstamp": versionstamp},
                            upsert=True,
                            session=session,
                        )
        except _CheckFailedError:
            return False
        except PyMongoError as e:
            # UnknownTransactionCommitResult may already be applied and is not retried
            if e.has_error_label("TransientTransactionError"):
                raise StoreBusyError(str(e)) from e
            raise
        return True

    async def close(self) -> None:
        await self.mongo_client.aclose()


def open_store(config: Config) -> KvStore:
    """Create the store backend selected by `config.database_url`."""
    url = config.database_url
    if url == ":memory:":
        return MemoryKvStore()
    if url.startswith(("mongodb://", "mongodb+srv://")):
        return MongoKvStore(url)
    return SqliteKvStore(Path(config.data_dir).resolve() / url)


async def perform_atomic_transaction(
    store: KvStore,
    operation: Callable[[KvStore], Awaitable[bool]],
    *,
    max_attempts: int = 100,
    retry_delay: float = 0.01,
    max_retry_delay: float = 1.0,
) -> None:
    """Run a read-compute-commit cycle until it commits.

    `operation` must read what it needs, compute new values purely from
    those reads and return the result of `AtomicOperation.commit()`.
    Conflicts and a busy store are both retried after an exponentially
    growing delay with jitter. Both count as attempts.

    Raises:
        TransactionRetriesExhaustedError: if no attempt committed
    """
    delay = retry_delay
    for attempt in range(1, max_attempts + 1):
        try:
            if await operation(store):
                return
            logger.debug("transaction_conflict", attempt=attempt, delay=delay)
        except StoreBusyError:
            logger.debug("transaction_retry", attempt=attempt, delay=delay)
        if attempt < max_attempts:
            await asyncio.sleep(random.uniform(delay / 2, delay))
            delay = min(delay * 2, max_retry_delay)

    logger.warning("transaction_retries_exhausted", attempts=max_attempts)
    raise TransactionRetriesExhaustedError(max_attempts)
