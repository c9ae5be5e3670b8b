from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode

from asngen.core.modules.namespace.codec import (
    is_valid_additional_managed_namespace,
    max_generic_namespace,
    min_generic_namespace,
)
from asngen.core.modules.namespace.models import (
    AdditionalManagedNamespace,
    deserialize_additional_managed_namespaces,
)


class BarcodeType(StrEnum):
    """Barcode symbologies offered for rendering ASN labels."""

    CODE128 = "CODE128"
    CODE39 = "CODE39"
    CODE93 = "CODE93"


class Config(BaseSettings):
    """Application configuration loaded from environment variables.

    The prefix and the digit count of `namespace_range` must never change
    after the first run; `SettingsService.reconcile` enforces this on startup.
    """

    prefix: str = Field(min_length=1, max_length=10, pattern=r"^[A-Z]+$")  # e.g. "ASN"
    namespace_range: int = Field(gt=0)  # 600 -> generic namespaces 100-599, 600-999 for manual use
    enable_namespace_extension: bool = False  # Leading 9s widen a namespace by one digit
    additional_managed_namespaces: Annotated[list[AdditionalManagedNamespace], NoDecode] = []
    barcode_type: BarcodeType = BarcodeType.CODE128
    lookup_url: str | None = Field(default=None, pattern=r"^https?://.*\{asn\}.*$")
    lookup_include_prefix: bool = False  # paperless-ngx and friends expect purely numeric ASNs
    data_dir: str = "data"  # Root directory of the per-ASN audit log files
    database_url: str = "asngen.sqlite3"  # ":memory:", a mongodb:// URL, or a SQLite file relative to data_dir
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    # Optimistic transaction retries
    transaction_max_attempts: int = Field(default=100, ge=1)
    transaction_retry_delay: float = Field(default=0.01, gt=0)  # Initial backoff when the store is busy (seconds)
    transaction_max_retry_delay: float = Field(default=1.0, gt=0)

    model_config = {
        "env_file": [".env"],
        "env_prefix": "ASNGEN_",
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("additional_managed_namespaces", mode="before")
    @classmethod
    def _parse_additional_managed_namespaces(cls, value: Any) -> Any:
        if isinstance(value, str):
            return deserialize_additional_managed_namespaces(value)
        return value

    @field_validator("barcode_type", mode="before")
    @classmethod
    def _normalize_barcode_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @model_validator(mode="after")
    def _validate_namespaces(self) -> Self:
        if max_generic_namespace(self) < min_generic_namespace(self):
            raise ValueError(
                f"namespace_range {self.namespace_range} leaves no generic namespaces. "
                "It must be larger than the smallest number with the same number of digits."
            )

        if self.enable_namespace_extension and str(max_generic_namespace(self)).startswith("9"):
            raise ValueError(
                "namespace_range includes namespaces with leading 9s "
                f"(up to {max_generic_namespace(self)}). "
                "This is not allowed when enable_namespace_extension is true."
            )

        invalid = [
            f"{self.prefix}{v.namespace}XXX - {v.label}"
            for v in self.additional_managed_namespaces
            if not is_valid_additional_managed_namespace(v.namespace, self)
        ]
        if invalid:
            raise ValueError(
                "Additional managed namespaces contain invalid namespace numbers: "
                + ", ".join(invalid)
                + ". They must be outside the generic range and have the same number of digits as "
                "namespace_range (ignoring leading 9s when enable_namespace_extension is true)."
            )
        return self
