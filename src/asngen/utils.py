import time
from datetime import UTC, datetime

# Largest integer that survives a round trip through JSON consumers using IEEE doubles
MAX_SAFE_INTEGER = 2**53 - 1


def is_safe_integer(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER


def now() -> datetime:
    return datetime.now(UTC)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
