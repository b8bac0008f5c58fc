from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from nftstats.api.main import create_app
from nftstats.db.persistence import MemoryBlobStore
from nftstats.services.store import AnalyticsStore

START_TS = 1_700_000_000  # 2023-11-14 22:13:20 UTC


@pytest.fixture(scope="session", autouse=True)
def _env() -> Iterator[None]:
    # Ensure test env uses local redis default unless provided
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
    yield


class FakeClock:
    def __init__(self, now: int = START_TS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int = 1) -> int:
        self.now += seconds
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def store(blobs: MemoryBlobStore, clock: FakeClock) -> AnalyticsStore:
    return AnalyticsStore(
        blobs,
        max_transactions=1000,
        persistence_enabled=True,
        namespace="test",
        clock=clock,
    )


@pytest.fixture()
def client(store: AnalyticsStore) -> Iterator[TestClient]:
    app = create_app(store=store)
    with TestClient(app) as c:
        yield c
