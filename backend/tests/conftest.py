from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest
import redis
from fastapi.testclient import TestClient

from zabava.api.deps import get_store
from zabava.main import app


class FakeStore:
    """内存版 KeyValueStore，可按键注入读取失败"""

    def __init__(self) -> None:
        self.sets: dict[str, set[str]] = {}
        self.hashes: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.down = False
        self.calls: list[tuple[str, str]] = []

    def sadd(self, key: str, *members: str) -> None:
        self.sets.setdefault(key, set()).update(members)

    def hset(self, key: str, **fields: Any) -> None:
        self.hashes.setdefault(key, {}).update(fields)

    def _check(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if key in self.failing:
            raise redis.TimeoutError(f"Timeout reading {key}")

    async def ping(self) -> bool:
        if self.down:
            raise redis.ConnectionError("Connection refused")
        return True

    async def smembers(self, key: str) -> list[str]:
        self._check("smembers", key)
        return sorted(self.sets.get(key, set()))

    async def hgetall(self, key: str) -> dict[str, Any]:
        self._check("hgetall", key)
        return dict(self.hashes.get(key, {}))


@pytest.fixture(scope="function")
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture(scope="function")
def client(store: FakeStore) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
