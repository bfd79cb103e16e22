"""
Redis Stream Writer
===================

직렬화된 Envelope를 Redis 스트림에 XADD로 기록
- 스트림 엔트리 ID는 브로커가 부여 (consumer 읽기 순서의 기준)
- 브로커 에러는 식별자를 포함한 StreamWriteError로 통일
- 재연결/재시도는 redis 클라이언트 정책에 맡김
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.common.errors import StreamWriteError
from src.stream.connection import build_redis_client

logger = logging.getLogger(__name__)

# 스트림 엔트리의 payload 필드명
DATA_FIELD = "data"


class StreamAppender(Protocol):
    """핸들러가 의존하는 최소 append 인터페이스"""

    async def append(self, stream_name: str, payload: bytes, envelope_id: str) -> str:
        ...


@dataclass
class WriterStats:
    """Writer 통계"""
    appended: int = 0
    failed: int = 0
    bytes_appended: int = 0
    start_time: float = field(default_factory=time.time)

    def __str__(self) -> str:
        return (
            f"WriterStats(appended={self.appended:,}, "
            f"failed={self.failed:,}, "
            f"bytes={self.bytes_appended:,})"
        )


class RedisStreamWriter:
    """
    Redis 스트림 append 전용 Writer

    상태:
    - uninitialized: 클라이언트 없음 (connect 전 / close 후)
    - ready: 연결된 클라이언트로 append 처리
    """

    STATE_UNINITIALIZED = "uninitialized"
    STATE_READY = "ready"

    def __init__(self, client: Optional[Redis] = None):
        self._client = client
        self.stats = WriterStats()

    @classmethod
    def connect(cls, address: str, tls_cert: str = "") -> "RedisStreamWriter":
        """주소/인증서로 클라이언트를 만들어 ready 상태의 Writer 반환"""
        return cls(build_redis_client(address, tls_cert))

    @property
    def state(self) -> str:
        return self.STATE_READY if self._client is not None else self.STATE_UNINITIALIZED

    @property
    def client(self) -> Optional[Redis]:
        return self._client

    async def append(self, stream_name: str, payload: bytes, envelope_id: str) -> str:
        """
        스트림에 엔트리 하나 추가

        Args:
            stream_name: 대상 스트림
            payload: 직렬화된 Envelope
            envelope_id: 로그 상관관계용 식별자 (브로커에는 전달하지 않음)

        Returns:
            브로커가 부여한 스트림 엔트리 ID
        """
        if self._client is None:
            self.stats.failed += 1
            raise StreamWriteError(envelope_id, RuntimeError("stream writer is not initialized"))

        try:
            entry_id = await self._client.xadd(stream_name, {DATA_FIELD: payload})
        except (RedisError, OSError) as e:
            self.stats.failed += 1
            raise StreamWriteError(envelope_id, e) from e

        if isinstance(entry_id, bytes):
            entry_id = entry_id.decode("ascii")

        self.stats.appended += 1
        self.stats.bytes_appended += len(payload)
        logger.debug(f"Appended {envelope_id} to {stream_name}: entry={entry_id}")
        return entry_id

    async def ping(self) -> bool:
        """Redis 연결 확인"""
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        """클라이언트 해제 (uninitialized 상태로 복귀)"""
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
        logger.info(f"Stream writer closed. {self.stats}")
