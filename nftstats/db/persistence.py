from __future__ import annotations

from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import settings
from ..errors import PersistenceFailure
from ..logging import get_logger
from .cache import get_redis

_log = get_logger("persistence")


class BlobStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """Process-local blob store; also handy for seeding corrupt state in tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class RedisBlobStore:
    """String blobs in Redis, one key per blob; SET is atomic per key."""

    def __init__(self, redis: Redis[str] | None = None, retry_max: int | None = None) -> None:
        self._redis = redis
        self._retry_max = retry_max or settings.PERSIST_RETRY_MAX

    @property
    def redis(self) -> Redis[str]:
        return self._redis if self._redis is not None else get_redis()

    def _retryer(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._retry_max),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
            retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
        )

    async def get(self, key: str) -> str | None:
        try:
            async for attempt in self._retryer():
                with attempt:
                    raw = await self.redis.get(key)
                    return None if raw is None else str(raw)
        except RedisError as exc:
            raise PersistenceFailure(key, str(exc)) from exc
        return None

    async def set(self, key: str, value: str) -> None:
        try:
            async for attempt in self._retryer():
                with attempt:
                    await self.redis.set(key, value)
                    _log.debug("blob_saved", key=key, size=len(value))
        except RedisError as exc:
            raise PersistenceFailure(key, str(exc)) from exc
