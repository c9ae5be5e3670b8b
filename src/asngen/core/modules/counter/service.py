from asngen.core.core import Service
from asngen.core.modules.counter.models import CounterRecord, counter_key, metadata_key
from asngen.core.store import KvStore


class CounterService(Service):
    """Service for managing the per-namespace counters."""

    async def increment(self, namespace: int, delta: int, record: CounterRecord) -> int:
        """Atomically advance the counter by `delta` and return the new value.

        The record is stored under the new counter value in the same commit.
        Concurrent callers never receive the same value.
        """
        counter = 0

        async def operation(store: KvStore) -> bool:
            nonlocal counter
            entry = await store.get(counter_key(namespace))
            counter = (entry.value or 0) + delta
            return (
                await store.atomic()
                .check(entry)
                .set(counter_key(namespace), counter)
                .set(metadata_key(namespace, counter), record.model_dump(mode="json"))
                .commit()
            )

        await self.core.transact(operation, lock_key=counter_key(namespace))
        return counter

    async def get_current_sequence(self, namespace: int) -> int:
        """Get the current counter value without incrementing. 0 if nothing was allocated yet."""
        entry = await self.store.get(counter_key(namespace))
        return int(entry.value or 0)

    async def get_record(self, namespace: int, counter: int) -> CounterRecord | None:
        """Get the record stored when `counter` was allocated, if it was."""
        entry = await self.store.get(metadata_key(namespace, counter))
        if entry.value is None:
            return None
        return CounterRecord.model_validate(entry.value)
