import logging

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.storage.redis import ORPHAN_KEY, RedisOrphanSink, clear_orphan, list_orphans, record_orphan


class FakeRedis:
    def __init__(self, fail=False):
        self.hashes = {}
        self.fail = fail

    async def hset(self, key, field, value):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.hashes.setdefault(key, {})[field] = value

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def hdel(self, key, field):
        self.hashes.get(key, {}).pop(field, None)


@pytest.mark.asyncio
async def test_record_list_and_clear():
    client = FakeRedis()
    await record_orphan("rec-2", "beta.example.test", "timeout", client=client)
    await record_orphan("rec-1", "alpha.example.test", "forbidden", client=client)

    orphans = await list_orphans(client=client)
    assert [o["provider_record_id"] for o in orphans] == ["rec-1", "rec-2"]
    assert orphans[0]["fqdn"] == "alpha.example.test"
    assert orphans[0]["reason"] == "forbidden"
    assert "detected_at" in orphans[0]

    await clear_orphan("rec-1", client=client)
    assert list(client.hashes[ORPHAN_KEY]) == ["rec-2"]


@pytest.mark.asyncio
async def test_sink_logs_and_persists(caplog):
    client = FakeRedis()
    sink = RedisOrphanSink(client=client)

    with caplog.at_level(logging.WARNING, logger="app.orphans"):
        await sink.report("rec-9", "gamma.example.test", "delete failed")

    assert "rec-9" in client.hashes[ORPHAN_KEY]
    assert any("rec-9" in r.getMessage() for r in caplog.records if r.name == "app.orphans")


@pytest.mark.asyncio
async def test_sink_survives_redis_outage(caplog):
    sink = RedisOrphanSink(client=FakeRedis(fail=True))

    with caplog.at_level(logging.WARNING):
        await sink.report("rec-9", "gamma.example.test", "delete failed")

    # The log line is still the durable trace
    assert any(r.name == "app.orphans" for r in caplog.records)
    assert any("Could not persist orphan rec-9" in r.getMessage() for r in caplog.records)
