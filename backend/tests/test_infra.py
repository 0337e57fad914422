from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError
from tenacity import stop_after_attempt

from zabava import backend_pre_start
from zabava.api.errors import AppError, store_unavailable
from zabava.core.config import Settings, parse_cors
from zabava.core.redis import get_redis
from zabava.core.redis_client import RedisStore
from zabava.services.loader import RecordLoader


class FakeAsyncRedis:
    """只实现 RedisStore 用到的几个异步方法"""

    def __init__(self) -> None:
        self.closed = False

    async def ping(self) -> bool:
        return True

    async def smembers(self, key: str) -> set:
        return {"qr:b@x.com:P1:v2", "qr:a@x.com:P1:v1"}

    async def hgetall(self, key: str) -> dict:
        return {} if key == "missing" else {"email": "a@x.com"}

    async def aclose(self) -> None:
        self.closed = True


def test_redis_store_wraps_client():
    client = FakeAsyncRedis()
    store = RedisStore(client)  # type: ignore[arg-type]

    assert asyncio.run(store.ping()) is True
    assert asyncio.run(store.smembers("partner:visits:P1")) == [
        "qr:a@x.com:P1:v1",
        "qr:b@x.com:P1:v2",
    ]
    assert asyncio.run(store.hgetall("qr:a@x.com:P1:v1")) == {"email": "a@x.com"}
    assert asyncio.run(store.hgetall("missing")) == {}

    asyncio.run(store.close())
    assert client.closed is True


def test_get_redis_is_singleton():
    # 创建客户端不会立即连接
    assert get_redis() is get_redis()


def test_settings_validation_paths():
    assert parse_cors("http://a.com, http://b.com") == ["http://a.com", "http://b.com"]
    assert parse_cors(["a"]) == ["a"]
    with pytest.raises(ValueError):
        parse_cors(123)

    s = Settings(BACKEND_CORS_ORIGINS="http://localhost:3000/")
    assert s.all_cors_origins == ["http://localhost:3000"]

    with pytest.raises(ValidationError):
        Settings(LEDGER_FETCH_CONCURRENCY=0)


def test_store_unavailable_error():
    e = store_unavailable("Connection refused")
    assert e.code == 503001
    assert e.status_code == 503
    assert "Connection refused" in e.message
    assert store_unavailable().message == "Key-value store unavailable"


def test_ensure_reachable_on_falsy_ping(store):
    async def ping() -> bool:
        return False

    store.ping = ping
    with pytest.raises(AppError) as info:
        asyncio.run(RecordLoader(store).ensure_reachable())
    assert info.value.code == 503001


def test_fetch_concurrency_is_bounded(store):
    active = 0
    peak = 0

    async def slow_hgetall(key: str) -> dict:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return {"email": key}

    store.hgetall = slow_hgetall
    loader = RecordLoader(store, concurrency=2)

    async def run() -> None:
        await asyncio.gather(*(loader.hgetall(f"k{i}") for i in range(6)))

    asyncio.run(run())
    assert peak == 2


def test_prestart_init(store):
    asyncio.run(backend_pre_start.init(store))


def test_prestart_main(monkeypatch, store):
    monkeypatch.setattr(backend_pre_start, "RedisStore", lambda _client: store)
    backend_pre_start.main()


def test_prestart_reraises_store_errors(store):
    store.down = True
    # 只尝试一次，原样抛出最后一次的异常
    once = backend_pre_start.init.retry_with(stop=stop_after_attempt(1), reraise=True)
    with pytest.raises(AppError):
        asyncio.run(once(store))
