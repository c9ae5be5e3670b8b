"""Online statistics about the time between registrations in a namespace."""

import math
from typing import Self

from pydantic import BaseModel, ConfigDict

from asngen.utils import now_ms

# Gap assumed before the very first registration of a namespace
EMPTY_SEED_GAP_MS = 10_000


class TimeStats(BaseModel):
    """Statistics about the time between registrations of numbers in a namespace.

    Immutable. Use `with_new_timestamp` to fold in a registration; mean and
    variance are updated incrementally so no sample history is stored.
    All durations are in milliseconds.

    `min` and `max` are 0 while `count` is 0. The first registration sets
    both to its gap instead of comparing it against that 0, so `min` reports
    the smallest observed gap rather than staying 0.
    """

    model_config = ConfigDict(frozen=True)

    namespace: int
    last_registered_timestamp: float  # Timestamp of the last registration
    count: int  # Number of registrations
    total: float  # Sum of all gaps between registrations
    min: float
    max: float
    avg: float
    variance: float
    sd: float

    @classmethod
    def empty(cls, namespace: int) -> Self:
        """Statistics for a namespace without registrations, seeded with a 10 second gap."""
        return cls(
            namespace=namespace,
            last_registered_timestamp=now_ms() - EMPTY_SEED_GAP_MS,
            count=0,
            total=0,
            min=0,
            max=0,
            avg=0,
            variance=0,
            sd=0,
        )

    def with_new_timestamp(self, timestamp: float | None = None) -> Self:
        """Return new statistics including a registration at `timestamp` (default: now).

        Does not modify this object.
        """
        if timestamp is None:
            timestamp = now_ms()
        diff = timestamp - self.last_registered_timestamp
        new_count = self.count + 1
        new_total = self.total + diff
        new_avg = new_total / new_count

        if self.count == 0:
            new_variance = 0.0
        elif self.count == 1:
            new_variance = ((self.avg - new_avg) ** 2 + (diff - new_avg) ** 2) / 2
        else:
            new_variance = (self.variance * self.count + (diff - new_avg) * (diff - self.avg)) / new_count

        return self.model_copy(
            update={
                "last_registered_timestamp": timestamp,
                "count": new_count,
                "total": new_total,
                # The empty seed has no observed gap to compare against
                "min": diff if self.count == 0 else min(self.min, diff),
                "max": diff if self.count == 0 else max(self.max, diff),
                "avg": new_avg,
                "variance": new_variance,
                "sd": math.sqrt(new_variance),
            }
        )

    def get_highest_rate(self, sigma: float) -> float:
        """Estimate the highest rate of registrations per millisecond.

        The result is expected to be exceeded with a probability below the
        one matching `sigma` standard deviations (1: 68.27 %, 2: 95.45 %,
        3: 99.73 %, 6: 99.99 %).

        This is a heuristic: it assumes normally distributed gaps, which bursty
        or non-stationary traffic violates. It is meant for picking a safe bump
        delta after restoring a backup, not as a statistical guarantee.
        """
        if self.avg == 0:
            return 0.0
        if self.sd == 0:
            return 1 / self.avg
        return 1 / self.avg + sigma * 1 / self.sd

    def __str__(self) -> str:
        return f"{self.avg:.5g} +/- {2 * self.sd:.5g} ms between registrations ({self.count} numbers registered)"
