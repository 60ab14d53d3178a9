"""Redis-backed alias store.

Key Layout
==========
::
    {prefix}:mappings   HASH   alias → UrlMapping JSON (live only)
    {prefix}:order      ZSET   alias scored by insertion sequence
    {prefix}:retired    SET    deleted aliases, never reissued
    {prefix}:seq        STRING insertion sequence counter

Atomicity
=========
Insert and delete each run as a single Lua script, so Redis executes the
check and the write with no other command in between. Listing reads the
order and the mappings inside one MULTI/EXEC block, which gives a consistent
snapshot.

How to Use
===========
**Step 1 — Build a client and the store**::
    client = create_redis_client(settings)
    store = RedisAliasStore(client, prefix=settings.REDIS_KEY_PREFIX)

**Step 2 — Cleanup on shutdown**::
    await store.close()
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from alias_registry.config import Settings
from alias_registry.schemas import UrlMapping
from alias_registry.store import AliasStore

__all__ = ["RedisAliasStore", "create_redis_client"]

logger = logging.getLogger("aliasregistry.redis_store")

INSERT_IF_ABSENT_SCRIPT = """
if redis.call('SISMEMBER', KEYS[3], ARGV[1]) == 1 then
    return 0
end
if redis.call('HSETNX', KEYS[1], ARGV[1], ARGV[2]) == 0 then
    return 0
end
local seq = redis.call('INCR', KEYS[4])
redis.call('ZADD', KEYS[2], seq, ARGV[1])
return 1
"""

RETIRE_SCRIPT = """
if redis.call('HDEL', KEYS[1], ARGV[1]) == 0 then
    return 0
end
redis.call('ZREM', KEYS[2], ARGV[1])
redis.call('SADD', KEYS[3], ARGV[1])
return 1
"""


def create_redis_client(settings: Settings) -> redis.Redis:
    return redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)


class RedisAliasStore(AliasStore):
    def __init__(self, client: redis.Redis, prefix: str = "aliases") -> None:
        self._client = client
        self._mappings_key = f"{prefix}:mappings"
        self._order_key = f"{prefix}:order"
        self._retired_key = f"{prefix}:retired"
        self._seq_key = f"{prefix}:seq"
        self._insert_script = client.register_script(INSERT_IF_ABSENT_SCRIPT)
        self._retire_script = client.register_script(RETIRE_SCRIPT)

    async def insert_if_absent(self, mapping: UrlMapping) -> bool:
        inserted = await self._insert_script(
            keys=[self._mappings_key, self._order_key, self._retired_key, self._seq_key],
            args=[mapping.alias, mapping.model_dump_json()],
        )
        return int(inserted) == 1

    async def get(self, alias: str) -> Optional[UrlMapping]:
        payload = await self._client.hget(self._mappings_key, alias)
        if payload is None:
            return None
        return UrlMapping.model_validate_json(payload)

    async def delete(self, alias: str) -> bool:
        retired = await self._retire_script(
            keys=[self._mappings_key, self._order_key, self._retired_key],
            args=[alias],
        )
        return int(retired) == 1

    async def list_all(self) -> list[UrlMapping]:
        pipe = self._client.pipeline(transaction=True)
        pipe.zrange(self._order_key, 0, -1)
        pipe.hgetall(self._mappings_key)
        aliases, payloads = await pipe.execute()
        return [UrlMapping.model_validate_json(payloads[alias]) for alias in aliases if alias in payloads]

    async def ping(self) -> bool:
        try:
            await self._client.ping()
        except RedisError as exc:
            logger.error(f"Redis health check failed: {exc}")
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()
