from __future__ import annotations

from functools import lru_cache

from redis.asyncio import Redis

from ..config import settings


@lru_cache(maxsize=1)
def get_redis() -> Redis[str]:
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)


def ns(namespace: str, key: str) -> str:
    return f"{namespace}:{key}"


async def ping() -> bool:
    r = get_redis()
    try:
        res = await r.ping()
        return bool(res)
    except Exception:
        return False
