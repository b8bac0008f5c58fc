from __future__ import annotations

from fastapi import APIRouter, Depends

from ... import __version__
from ...db.cache import ping
from ...db.persistence import RedisBlobStore
from ...services.store import AnalyticsStore
from ..deps import get_store

router = APIRouter()


@router.get("/healthz")
async def healthz(store: AnalyticsStore = Depends(get_store)) -> dict[str, object]:
    redis_ok = await ping() if isinstance(store.blobs, RedisBlobStore) else None
    return {
        "status": "ok",
        "version": __version__,
        "persistence": store.persistence_enabled,
        "redis": redis_ok,
    }
