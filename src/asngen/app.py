import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from pydantic import BaseModel

from asngen.config import Config
from asngen.core.core import Core
from asngen.core.modules.asn.format import get_format_description, get_lookup_url
from asngen.core.modules.asn.models import ASNData
from asngen.core.modules.bump.models import BumpRecommendation, BumpResult
from asngen.core.modules.namespace.codec import all_managed_namespaces, is_managed_namespace, max_generic_namespace
from asngen.core.modules.stats.models import TimeStats
from asngen.core.store import KvStore
from asngen.errors import ValidationError


class ManagedNamespaceView(BaseModel):
    """A namespace the system allocates in, as shown to clients."""

    namespace: int
    label: str | None = None  # Only additional managed namespaces carry a label
    generic: bool


class App:
    """Facade for all application operations, validates requests before delegating to Core."""

    def __init__(self, config: Config, store: KvStore | None = None) -> None:
        self._core = Core(config, store)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def generate_asn(self, metadata: dict[str, Any] | None = None, namespace: int | None = None) -> ASNData:
        """Generate a new ASN, optionally in a specific managed namespace."""
        if namespace is not None:
            self._ensure_managed(namespace)
        return await self._core.services.asn.generate_asn(metadata, namespace)

    async def generate_asns(self, count: int, metadata: dict[str, Any] | None = None) -> list[ASNData]:
        """Generate several ASNs concurrently in automatically chosen namespaces."""
        if count < 1:
            raise ValidationError("Count must be at least 1")
        return list(await asyncio.gather(*(self._core.services.asn.generate_asn(metadata) for _ in range(count))))

    async def get_asn(self, asn: str) -> ASNData:
        """Get a previously generated ASN with its metadata."""
        return await self._core.services.asn.get_asn(asn)

    def get_lookup_url(self, asn: str) -> str:
        """Get the external lookup URL for an ASN."""
        return get_lookup_url(asn, self.config)

    def get_managed_namespaces(self) -> list[ManagedNamespaceView]:
        """List generic namespaces followed by the additional managed ones."""
        labels = {v.namespace: v.label for v in self.config.additional_managed_namespaces}
        maximum = max_generic_namespace(self.config)
        return [
            ManagedNamespaceView(namespace=n, label=labels.get(n), generic=n <= maximum)
            for n in all_managed_namespaces(self.config)
        ]

    def get_format_description(self) -> str:
        return get_format_description(self.config)

    async def get_stats(self, namespace: int | None = None) -> list[TimeStats]:
        """Get timing statistics of one managed namespace or of all of them."""
        if namespace is not None:
            self._ensure_managed(namespace)
            namespaces = [namespace]
        else:
            namespaces = all_managed_namespaces(self.config)
        return list(await asyncio.gather(*(self._core.services.stats.get_stats(n) for n in namespaces)))

    async def recommend_bump(
        self, hours: float, sigma: float = 3, namespace: int | None = None
    ) -> BumpRecommendation:
        """Suggest a bump delta for a backup that is `hours` old."""
        namespaces = [namespace] if namespace is not None else None
        return await self._core.services.bump.recommend_delta(hours, sigma, namespaces)

    async def bump(
        self,
        delta_counter: int,
        namespace: int | None = None,
        bumped_by: str | None = None,
        reason: str | None = None,
    ) -> list[BumpResult]:
        """Bump one managed namespace, or all of them, by `delta_counter`."""
        namespaces = [namespace] if namespace is not None else None
        return await self._core.services.bump.bump(delta_counter, namespaces, bumped_by, reason)

    def _ensure_managed(self, namespace: int) -> None:
        if not is_managed_namespace(namespace, self.config):
            raise ValidationError(
                f"Unregistered namespace {namespace}. "
                "Please add it to the additional_managed_namespaces configuration parameter."
            )
