"""Per-namespace counters and the records stored for each allocated value."""

from typing import Any

from pydantic import BaseModel, ConfigDict

COUNTER_KEY = "namespace"
METADATA_KEY = "metadata"


def counter_key(namespace: int) -> tuple[str, int]:
    """Store key of a namespace's current counter value."""
    return (COUNTER_KEY, namespace)


def metadata_key(namespace: int, counter: int) -> tuple[str, int, int]:
    """Store key of the record written when `counter` was allocated in `namespace`."""
    return (METADATA_KEY, namespace, counter)


class CounterRecord(BaseModel):
    """Immutable record written together with every counter increment."""

    model_config = ConfigDict(frozen=True)

    metadata: dict[str, Any]
    timestamp: int  # Milliseconds since the epoch
