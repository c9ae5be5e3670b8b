"""Tests for ASN allocation on the SQLite backend."""

import asyncio

import pytest

from asngen.core.core import Core


class TestSqliteAllocation:
    @pytest.mark.asyncio
    async def test_counters_survive_restart(self, make_config):
        config = make_config(database_url="asn.sqlite3")

        core = Core(config)
        async with core.lifespan():
            await core.services.asn.generate_asn(namespace=123)
            await core.services.asn.generate_asn(namespace=123)

        restarted = Core(config)
        async with restarted.lifespan():
            asn_data = await restarted.services.asn.generate_asn(namespace=123)
            assert asn_data.asn == "ASN123003"
            assert (await restarted.services.asn.get_asn("ASN123001")).counter == 1

    @pytest.mark.asyncio
    async def test_concurrent_allocations_are_unique(self, make_config):
        core = Core(make_config(database_url="asn.sqlite3"))
        async with core.lifespan():
            results = await asyncio.gather(*(core.services.asn.generate_asn(namespace=200) for _ in range(20)))
        assert sorted(r.counter for r in results) == list(range(1, 21))

    @pytest.mark.asyncio
    async def test_heavy_contention_on_one_namespace(self, make_config):
        core = Core(make_config(database_url="asn.sqlite3"))
        async with core.lifespan():
            results = await asyncio.gather(
                *(core.services.asn.generate_asn({}, namespace=200) for _ in range(300)), return_exceptions=True
            )
            stats = await core.services.stats.get_stats(200)

        errors = [r for r in results if isinstance(r, BaseException)]
        assert errors == []
        assert sorted(r.counter for r in results) == list(range(1, 301))
        assert stats.count == 300
