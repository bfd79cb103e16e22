"""
공용 테스트 fixture
===================

- 실제 Redis 대신 호출을 기록하는 FakeAppender / FakeRedisClient
- 작은 바디 상한(16 bytes)의 ProducerConfig
"""

from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from src.common.config import ProducerConfig
from src.common.errors import StreamWriteError
from src.monitoring.metrics import ProducerMetrics
from src.producer.app import create_app
from src.producer.idgen import TimeOrderedIdGenerator

FIXTURES = Path(__file__).parent / "fixtures"

SIZE_LIMIT = 16


class FakeAppender:
    """append 호출을 기록하는 spy. fail_with가 있으면 StreamWriteError 발생"""

    def __init__(self, fail_with: Optional[BaseException] = None):
        self.calls: List[Tuple[str, bytes, str]] = []
        self.fail_with = fail_with
        self.closed = False

    async def append(self, stream_name: str, payload: bytes, envelope_id: str) -> str:
        self.calls.append((stream_name, payload, envelope_id))
        if self.fail_with is not None:
            raise StreamWriteError(envelope_id, self.fail_with)
        return f"1700000000000-{len(self.calls) - 1}"

    async def close(self) -> None:
        self.closed = True


class FakeRedisClient:
    """redis.asyncio.Redis 의 xadd/ping/aclose 만 흉내"""

    def __init__(self, error: Optional[BaseException] = None):
        self.error = error
        self.xadd_calls = []
        self.closed = False

    async def xadd(self, name, fields):
        if self.error is not None:
            raise self.error
        self.xadd_calls.append((name, fields))
        return f"1700000000000-{len(self.xadd_calls) - 1}".encode("ascii")

    async def ping(self):
        if self.error is not None:
            raise self.error
        return True

    async def aclose(self):
        self.closed = True


def make_config(**overrides) -> ProducerConfig:
    values = dict(
        stream_name="requests",
        redis_address="localhost:6379",
        request_size_limit=SIZE_LIMIT,
        tls_cert="",
        host="127.0.0.1",
        port=8080,
        envelope_format="json",
        metrics_port=0,
        log_level="INFO",
    )
    values.update(overrides)
    return ProducerConfig(**values)


@pytest.fixture
def config() -> ProducerConfig:
    return make_config()


@pytest.fixture
def appender() -> FakeAppender:
    return FakeAppender()


@pytest.fixture
def metrics() -> ProducerMetrics:
    return ProducerMetrics()


@pytest.fixture
def client(config, appender, metrics) -> TestClient:
    app = create_app(config, appender, id_generator=TimeOrderedIdGenerator(), metrics=metrics)
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def ca_pem() -> str:
    return (FIXTURES / "redis-ca.pem").read_text(encoding="ascii")
