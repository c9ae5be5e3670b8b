from __future__ import annotations

import asyncio
import importlib
from collections import defaultdict
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import cast

from asngen.config import Config
from asngen.core.store import KvKey, KvStore, open_store, perform_atomic_transaction


class Service:
    """Base class for services with direct store access."""

    def __init__(self, store: KvStore) -> None:
        self.store = store
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    @property
    def config(self) -> Config:
        return self.core.config

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from asngen.core.modules.asn.service import AsnService  # noqa: PLC0415
    from asngen.core.modules.bump.service import BumpService  # noqa: PLC0415
    from asngen.core.modules.counter.service import CounterService  # noqa: PLC0415
    from asngen.core.modules.settings.service import SettingsService  # noqa: PLC0415
    from asngen.core.modules.stats.service import StatsService  # noqa: PLC0415

    settings: SettingsService
    counter: CounterService
    stats: StatsService
    asn: AsnService
    bump: BumpService

    def __init__(self, store: KvStore) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - settings reconciliation must run before anything allocates
        service_configs = [
            ("settings", "asngen.core.modules.settings.service", "SettingsService"),
            ("counter", "asngen.core.modules.counter.service", "CounterService"),
            ("stats", "asngen.core.modules.stats.service", "StatsService"),
            ("asn", "asngen.core.modules.asn.service", "AsnService"),
            ("bump", "asngen.core.modules.bump.service", "BumpService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(store)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, the key-value store, and all service instances."""

    config: Config
    store: KvStore
    services: Services

    def __init__(self, config: Config, store: KvStore | None = None) -> None:
        """Initialize core with config and store, and auto-register services.

        The store backend is derived from `config.database_url` unless one is passed in.
        """
        self.config = config
        self.store = store if store is not None else open_store(config)
        self.services = Services(self.store)
        self._locks: defaultdict[KvKey, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services; raises ConfigurationDriftError on incompatible configuration changes."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the store."""
        await self.services.stop_all()
        await self.store.close()

    async def transact(self, operation: Callable[[KvStore], Awaitable[bool]], lock_key: KvKey | None = None) -> None:
        """Run an atomic read-compute-commit operation with the configured retry policy.

        Operations sharing a `lock_key` run one at a time within this process,
        so only other processes can cause optimistic conflicts on that key.
        """
        if lock_key is None:
            await self._perform(operation)
            return
        async with self._locks[lock_key]:
            await self._perform(operation)

    async def _perform(self, operation: Callable[[KvStore], Awaitable[bool]]) -> None:
        await perform_atomic_transaction(
            self.store,
            operation,
            max_attempts=self.config.transaction_max_attempts,
            retry_delay=self.config.transaction_retry_delay,
            max_retry_delay=self.config.transaction_max_retry_delay,
        )
