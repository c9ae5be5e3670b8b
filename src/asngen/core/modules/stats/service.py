from collections.abc import Iterable

from asngen.core.core import Service
from asngen.core.modules.stats.models import TimeStats
from asngen.core.store import KvStore
from asngen.utils import now_ms

TIME_STATS_KEY = "timeStats"
MS_PER_HOUR = 60 * 60 * 1000


def stats_key(namespace: int) -> tuple[str, int, str]:
    return ("namespace", namespace, TIME_STATS_KEY)


def max_hourly_rate(stats: Iterable[TimeStats], sigma: float, min_count: int = 3) -> float:
    """Highest expected registrations per hour across namespaces.

    Only namespaces with more than `min_count` registrations are considered;
    returns 0 if there are none.
    """
    rates = [s.get_highest_rate(sigma) for s in stats if s.count > min_count]
    return max(rates, default=0.0) * MS_PER_HOUR


class StatsService(Service):
    """Maintains the registration timing statistics of each namespace."""

    async def get_stats(self, namespace: int) -> TimeStats:
        """Load the stored statistics, or empty ones if the namespace has none."""
        entry = await self.store.get(stats_key(namespace))
        if entry.value is None:
            return TimeStats.empty(namespace)
        return TimeStats.model_validate(entry.value)

    async def add_timestamp(self, namespace: int, timestamp: float | None = None) -> TimeStats:
        """Fold a registration at `timestamp` (default: now) into the namespace's statistics."""
        if timestamp is None:
            timestamp = now_ms()
        updated = TimeStats.empty(namespace)

        async def operation(store: KvStore) -> bool:
            nonlocal updated
            entry = await store.get(stats_key(namespace))
            stats = TimeStats.empty(namespace) if entry.value is None else TimeStats.model_validate(entry.value)
            updated = stats.with_new_timestamp(timestamp)
            return await store.atomic().check(entry).set(stats_key(namespace), updated.model_dump(mode="json")).commit()

        await self.core.transact(operation, lock_key=stats_key(namespace))
        return updated
