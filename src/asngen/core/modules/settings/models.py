from typing import Self

from pydantic import BaseModel

from asngen.config import Config

CONFIG_KEY = ("config",)


class PersistedConfig(BaseModel):
    """The configuration values stored as a baseline for the next startup."""

    model_config = {"extra": "ignore"}

    prefix: str
    namespace_range: int
    enable_namespace_extension: bool = False
    barcode_type: str | None = None

    @classmethod
    def from_config(cls, config: Config) -> Self:
        return cls(
            prefix=config.prefix,
            namespace_range=config.namespace_range,
            enable_namespace_extension=config.enable_namespace_extension,
            barcode_type=config.barcode_type.value,
        )
