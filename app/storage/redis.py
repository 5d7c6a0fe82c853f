from datetime import datetime
import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.logger import orphan_logger

logger = logging.getLogger(__name__)

ORPHAN_KEY = "orphaned_dns_records"

redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


async def record_orphan(provider_record_id: str, fqdn: str, reason: str, client=None):
    entry = {
        "fqdn": fqdn,
        "reason": reason,
        "detected_at": datetime.utcnow().isoformat(),
    }
    await (client or redis_client).hset(ORPHAN_KEY, provider_record_id, json.dumps(entry))


async def list_orphans(client=None) -> list[dict]:
    raw = await (client or redis_client).hgetall(ORPHAN_KEY)
    return [
        {"provider_record_id": record_id, **json.loads(value)}
        for record_id, value in sorted(raw.items())
    ]


async def clear_orphan(provider_record_id: str, client=None):
    await (client or redis_client).hdel(ORPHAN_KEY, provider_record_id)


class RedisOrphanSink:
    """Logs orphaned provider records and keeps them in a redis hash for sweeps."""

    def __init__(self, client=None):
        self.client = client or redis_client

    async def report(self, provider_record_id: str, fqdn: str, reason: str):
        orphan_logger.warning(
            f"Orphaned DNS record {provider_record_id} ({fqdn}): {reason}"
        )
        try:
            await record_orphan(provider_record_id, fqdn, reason, client=self.client)
        except RedisError as e:
            logger.error(f"Could not persist orphan {provider_record_id} to redis: {e}")
