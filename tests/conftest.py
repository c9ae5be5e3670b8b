"""Shared pytest fixtures."""

from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio

from asngen.app import App
from asngen.config import Config
from asngen.core.core import Core
from asngen.core.store import MemoryKvStore


@pytest.fixture
def make_config(tmp_path) -> Callable[..., Config]:
    """Factory for configs that ignore .env files and write audit logs below tmp_path."""

    def factory(**overrides: Any) -> Config:
        values: dict[str, Any] = {
            "prefix": "ASN",
            "namespace_range": 600,
            "data_dir": str(tmp_path / "data"),
            "database_url": ":memory:",
        }
        values.update(overrides)
        return Config(_env_file=None, **values)

    return factory


@pytest.fixture
def config(make_config) -> Config:
    return make_config()


@pytest.fixture
def store() -> MemoryKvStore:
    return MemoryKvStore()


@pytest_asyncio.fixture
async def core(config, store) -> AsyncGenerator[Core]:
    """A started Core on an in-memory store."""
    core = Core(config, store)
    async with core.lifespan():
        yield core


@pytest_asyncio.fixture
async def app(config, store) -> AsyncGenerator[App]:
    """A started App on an in-memory store."""
    app = App(config, store)
    async with app.lifespan():
        yield app
