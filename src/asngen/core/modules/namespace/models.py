"""Additional managed namespaces and their environment variable format."""

import re

from pydantic import BaseModel, ConfigDict, Field

_SINGLE_RE = re.compile(r"^<(\d+) (.+)>[, ]*$")
_MULTIPLE_RE = re.compile(r"<\d+ .+?>[, ]*")


class AdditionalManagedNamespace(BaseModel):
    """A namespace outside the generic range that is explicitly managed.

    Typically used for pre-printed ASN labels. The label is shown when
    selecting the namespace.
    """

    model_config = ConfigDict(frozen=True)

    namespace: int
    label: str = Field(min_length=1)


def serialize_additional_managed_namespace(value: AdditionalManagedNamespace) -> str:
    return f"<{value.namespace} {value.label}>"


def deserialize_additional_managed_namespace(value: str) -> AdditionalManagedNamespace:
    """Parse a single `<NUMBER LABEL>` entry. Raises ValueError on malformed input."""
    match = _SINGLE_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid additional managed namespace: {value}")
    return AdditionalManagedNamespace(namespace=int(match.group(1)), label=match.group(2))


def serialize_additional_managed_namespaces(values: list[AdditionalManagedNamespace]) -> str:
    """Serialize to the environment format, e.g. `<500 Internal><600 NDA-Covered>`."""
    return "".join(serialize_additional_managed_namespace(v) for v in values)


def deserialize_additional_managed_namespaces(value: str) -> list[AdditionalManagedNamespace]:
    """Parse the environment format. Entries may be separated by commas or spaces."""
    return [deserialize_additional_managed_namespace(m) for m in _MULTIPLE_RE.findall(value.strip())]
