from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ASNData(BaseModel):
    """An Alphanumeric Serial Number (ASN) and its parts."""

    model_config = ConfigDict(frozen=True)

    asn: str  # Prefix + namespace + counter padded to at least three digits, e.g. "ASN123456789"
    namespace: int
    prefix: str
    counter: int  # Starts at 1 and grows with each ASN in the namespace
    metadata: dict[str, Any] = Field(default_factory=dict)
