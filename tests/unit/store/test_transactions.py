"""Tests for the optimistic transaction retry loop."""

import asyncio

import pytest

from asngen.core.store import MemoryKvStore, perform_atomic_transaction
from asngen.errors import StoreBusyError, TransactionRetriesExhaustedError

KEY = ("namespace", 123)


class TestPerformAtomicTransaction:
    @pytest.mark.asyncio
    async def test_commits_on_first_attempt(self):
        store = MemoryKvStore()
        attempts = 0

        async def operation(s):
            nonlocal attempts
            attempts += 1
            entry = await s.get(KEY)
            return await s.atomic().check(entry).set(KEY, (entry.value or 0) + 1).commit()

        await perform_atomic_transaction(store, operation)

        assert attempts == 1
        assert (await store.get(KEY)).value == 1

    @pytest.mark.asyncio
    async def test_conflict_is_retried_with_fresh_read(self):
        store = MemoryKvStore()
        attempts = 0

        async def operation(s):
            nonlocal attempts
            attempts += 1
            entry = await s.get(KEY)
            if attempts == 1:
                # A concurrent writer commits between our read and our commit
                await s.set(KEY, 10)
            return await s.atomic().check(entry).set(KEY, (entry.value or 0) + 1).commit()

        await perform_atomic_transaction(store, operation)

        assert attempts == 2
        assert (await store.get(KEY)).value == 11

    @pytest.mark.asyncio
    async def test_busy_store_backs_off(self, monkeypatch):
        delays = []
        real_sleep = asyncio.sleep

        async def fake_sleep(delay):
            delays.append(delay)
            await real_sleep(0)

        monkeypatch.setattr("asngen.core.store.asyncio.sleep", fake_sleep)
        monkeypatch.setattr("asngen.core.store.random.uniform", lambda _, high: high)
        attempts = 0

        async def operation(_):
            nonlocal attempts
            attempts += 1
            if attempts <= 4:
                raise StoreBusyError("database is locked")
            return True

        await perform_atomic_transaction(
            MemoryKvStore(), operation, max_attempts=10, retry_delay=0.01, max_retry_delay=0.03
        )

        assert attempts == 5
        assert delays == [0.01, 0.02, 0.03, 0.03]

    @pytest.mark.asyncio
    async def test_exhausted_attempts(self):
        attempts = 0

        async def operation(_):
            nonlocal attempts
            attempts += 1
            return False

        with pytest.raises(TransactionRetriesExhaustedError) as exc_info:
            await perform_atomic_transaction(MemoryKvStore(), operation, max_attempts=5)

        assert attempts == 5
        assert exc_info.value.attempts == 5

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        async def operation(_):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await perform_atomic_transaction(MemoryKvStore(), operation)

    @pytest.mark.asyncio
    async def test_concurrent_increments_never_collide(self):
        store = MemoryKvStore()
        results = []

        async def increment():
            value = 0

            async def operation(s):
                nonlocal value
                entry = await s.get(KEY)
                value = (entry.value or 0) + 1
                await asyncio.sleep(0)  # Let other writers interleave
                return await s.atomic().check(entry).set(KEY, value).commit()

            await perform_atomic_transaction(store, operation, retry_delay=0.001, max_retry_delay=0.01)
            results.append(value)

        await asyncio.gather(*(increment() for _ in range(20)))

        assert sorted(results) == list(range(1, 21))
        assert (await store.get(KEY)).value == 20

    @pytest.mark.asyncio
    async def test_conflicts_back_off_with_jitter(self, monkeypatch):
        delays = []
        real_sleep = asyncio.sleep

        async def fake_sleep(delay):
            delays.append(delay)
            await real_sleep(0)

        monkeypatch.setattr("asngen.core.store.asyncio.sleep", fake_sleep)
        attempts = 0

        async def operation(_):
            nonlocal attempts
            attempts += 1
            return attempts > 4

        await perform_atomic_transaction(
            MemoryKvStore(), operation, max_attempts=10, retry_delay=0.01, max_retry_delay=0.03
        )

        assert attempts == 5
        assert len(delays) == 4
        for delay, upper in zip(delays, [0.01, 0.02, 0.03, 0.03], strict=True):
            assert upper / 2 <= delay <= upper

    @pytest.mark.asyncio
    async def test_no_sleep_after_last_attempt(self, monkeypatch):
        delays = []
        real_sleep = asyncio.sleep

        async def fake_sleep(delay):
            delays.append(delay)
            await real_sleep(0)

        monkeypatch.setattr("asngen.core.store.asyncio.sleep", fake_sleep)

        async def operation(_):
            return False

        with pytest.raises(TransactionRetriesExhaustedError):
            await perform_atomic_transaction(MemoryKvStore(), operation, max_attempts=3)

        assert len(delays) == 2
