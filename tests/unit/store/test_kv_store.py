"""Tests for the key-value store backends."""

import pytest

from asngen.core.store import MemoryKvStore, SqliteKvStore, open_store


@pytest.fixture(params=["memory", "sqlite"])
def kv_store(request, tmp_path):
    if request.param == "memory":
        return MemoryKvStore()
    return SqliteKvStore(tmp_path / "kv.sqlite3")


class TestKvStore:
    @pytest.mark.asyncio
    async def test_missing_key(self, kv_store):
        entry = await kv_store.get(("namespace", 123))
        assert entry.value is None
        assert entry.versionstamp is None
        await kv_store.close()

    @pytest.mark.asyncio
    async def test_set_and_get(self, kv_store):
        await kv_store.set(("metadata", 123, 1), {"client": "cli", "tags": [1, 2]})
        entry = await kv_store.get(("metadata", 123, 1))
        assert entry.value == {"client": "cli", "tags": [1, 2]}
        assert entry.versionstamp is not None
        await kv_store.close()

    @pytest.mark.asyncio
    async def test_keys_with_same_text_differ_by_type(self, kv_store):
        await kv_store.set(("namespace", 1), 5)
        assert (await kv_store.get(("namespace", "1"))).value is None
        await kv_store.close()

    @pytest.mark.asyncio
    async def test_check_of_unchanged_entry_commits(self, kv_store):
        entry = await kv_store.get(("namespace", 123))
        assert await kv_store.atomic().check(entry).set(("namespace", 123), 1).commit()
        assert (await kv_store.get(("namespace", 123))).value == 1
        await kv_store.close()

    @pytest.mark.asyncio
    async def test_check_of_changed_entry_fails(self, kv_store):
        stale = await kv_store.get(("namespace", 123))
        await kv_store.set(("namespace", 123), 1)

        committed = await kv_store.atomic().check(stale).set(("namespace", 123), 99).commit()

        assert not committed
        assert (await kv_store.get(("namespace", 123))).value == 1
        await kv_store.close()

    @pytest.mark.asyncio
    async def test_failed_commit_applies_no_mutation(self, kv_store):
        stale = await kv_store.get(("namespace", 123))
        await kv_store.set(("namespace", 123), 1)

        committed = await (
            kv_store.atomic().check(stale).set(("metadata", 123, 2), {"x": 1}).set(("namespace", 123), 2).commit()
        )

        assert not committed
        assert (await kv_store.get(("metadata", 123, 2))).value is None
        await kv_store.close()

    @pytest.mark.asyncio
    async def test_commit_changes_versionstamp(self, kv_store):
        await kv_store.set(("namespace", 123), 1)
        before = await kv_store.get(("namespace", 123))
        await kv_store.set(("namespace", 123), 1)
        after = await kv_store.get(("namespace", 123))
        assert before.versionstamp != after.versionstamp
        await kv_store.close()


class TestSqliteKvStore:
    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / "nested" / "kv.sqlite3"
        kv_store = SqliteKvStore(path)
        await kv_store.set(("namespace", 123), 7)
        await kv_store.close()

        reopened = SqliteKvStore(path)
        assert (await reopened.get(("namespace", 123))).value == 7
        await reopened.close()


class TestOpenStore:
    def test_memory(self, make_config):
        assert isinstance(open_store(make_config(database_url=":memory:")), MemoryKvStore)

    @pytest.mark.asyncio
    async def test_sqlite_relative_to_data_dir(self, make_config, tmp_path):
        kv_store = open_store(make_config(data_dir=str(tmp_path), database_url="asn.sqlite3"))
        assert isinstance(kv_store, SqliteKvStore)
        assert kv_store.path == tmp_path.resolve() / "asn.sqlite3"
        await kv_store.close()
