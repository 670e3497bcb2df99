from typing import Any

import redis.asyncio as redis

RedisClient = redis.Redis

# Row-change notifications are bridged from Postgres logical replication
# onto these pub/sub channels, one per table.
REALTIME_CHANNEL_PREFIX = "realtime:public:"


def get_redis_client(redis_url: str, **kwargs: Any) -> redis.Redis:
    return redis.from_url(redis_url, decode_responses=True, **kwargs)


def realtime_channel(table: str) -> str:
    return f"{REALTIME_CHANNEL_PREFIX}{table}"
