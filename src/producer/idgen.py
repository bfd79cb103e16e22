"""
Time-Ordered ID Generator
=========================

요청마다 시간 순으로 정렬되는 UUID(v6 레이아웃) 문자열을 생성
- 상위 60bit: 1582-10-15 기준 100ns 단위 타임스탬프 (big-endian 순서)
- 14bit clock sequence: 같은 tick 안에서 증가하여 순서 유지
- 48bit node: 생성기마다 한 번 뽑는 랜덤 값 (멀티캐스트 비트 설정)

문자열 정렬 순서 == 생성 순서 (단일 생성기 기준)
"""

import logging
import secrets
import threading
import time
import uuid
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# 1582-10-15 00:00:00 UTC ~ 1970-01-01 00:00:00 UTC (100ns 단위)
GREGORIAN_OFFSET = 0x01B21DD213814000

_TIMESTAMP_MASK = (1 << 60) - 1
_CLOCK_SEQ_MAX = (1 << 14) - 1


def _random_node() -> int:
    return secrets.randbits(48) | (1 << 40)


class TimeOrderedIdGenerator:
    """
    UUIDv6 레이아웃의 단조 증가 식별자 생성기

    clock은 Unix epoch 기준 나노초를 반환하는 callable (기본 time.time_ns).
    테스트에서는 고정 시각을 넘겨 순서를 결정적으로 검증할 수 있다.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        node: Optional[int] = None,
    ):
        self._clock = clock or time.time_ns
        self._node = _random_node() if node is None else node & ((1 << 48) - 1)
        self._last_tick = -1
        self._clock_seq = 0
        self._lock = threading.Lock()

    def _next_fields(self) -> tuple:
        tick = (self._clock() // 100 + GREGORIAN_OFFSET) & _TIMESTAMP_MASK

        with self._lock:
            if tick > self._last_tick:
                # 새 tick: 증가 여유를 위해 하위 절반에서 시작
                self._last_tick = tick
                self._clock_seq = secrets.randbits(13)
            else:
                # 같은 tick 또는 시계 역행: 이전 tick 유지, sequence 증가
                self._clock_seq += 1
                if self._clock_seq > _CLOCK_SEQ_MAX:
                    self._last_tick += 1
                    self._clock_seq = 0
                    logger.debug("clock sequence exhausted, advancing tick")
            return self._last_tick, self._clock_seq

    def new_uuid(self) -> uuid.UUID:
        tick, clock_seq = self._next_fields()

        time_high = tick >> 12
        time_low = tick & 0x0FFF
        value = (
            (time_high << 80)
            | (0x6 << 76)
            | (time_low << 64)
            | (0b10 << 62)
            | (clock_seq << 48)
            | self._node
        )
        return uuid.UUID(int=value)

    def new_id(self) -> str:
        """정규 UUID 문자열 (소문자, 하이픈 포함)"""
        return str(self.new_uuid())


def uuid_timestamp_ns(value: str) -> int:
    """UUIDv6 문자열에서 생성 시각(Unix epoch ns, 100ns 정밀도)을 복원"""
    n = uuid.UUID(value).int
    tick = ((n >> 80) << 12) | ((n >> 64) & 0x0FFF)
    return (tick - GREGORIAN_OFFSET) * 100
