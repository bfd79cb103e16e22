"""
시간 순 식별자 테스트
=====================

고정 clock을 주입하여 순서를 결정적으로 검증
"""

import threading
import uuid

from src.producer.idgen import TimeOrderedIdGenerator, uuid_timestamp_ns

T0 = 1_700_000_000_000_000_000  # ns


class FixedClock:
    def __init__(self, value: int):
        self.value = value

    def __call__(self) -> int:
        return self.value


class TestTimeOrderedIdGenerator:
    """TimeOrderedIdGenerator 테스트"""

    def test_uuid_version_and_variant(self):
        gen = TimeOrderedIdGenerator(clock=FixedClock(T0))
        value = uuid.UUID(gen.new_id())

        assert value.version == 6
        assert value.variant == uuid.RFC_4122

    def test_later_time_sorts_after(self):
        clock = FixedClock(T0)
        gen = TimeOrderedIdGenerator(clock=clock)

        first = gen.new_id()
        clock.value = T0 + 1_000
        second = gen.new_id()

        assert first < second

    def test_same_tick_is_strictly_increasing(self):
        gen = TimeOrderedIdGenerator(clock=FixedClock(T0))
        ids = [gen.new_id() for _ in range(1000)]

        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_clock_going_backwards_still_increases(self):
        clock = FixedClock(T0)
        gen = TimeOrderedIdGenerator(clock=clock)

        first = gen.new_id()
        clock.value = T0 - 10_000_000
        second = gen.new_id()

        assert first < second

    def test_sequence_overflow_advances_tick(self):
        gen = TimeOrderedIdGenerator(clock=FixedClock(T0))
        ids = [gen.new_id() for _ in range((1 << 14) + 1)]

        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)
        assert uuid_timestamp_ns(ids[-1]) > uuid_timestamp_ns(ids[0])

    def test_timestamp_is_recoverable(self):
        gen = TimeOrderedIdGenerator(clock=FixedClock(T0 + 1234))

        # 100ns 정밀도로 잘림
        assert uuid_timestamp_ns(gen.new_id()) == T0 + 1200

    def test_node_is_fixed_per_generator(self):
        gen = TimeOrderedIdGenerator(clock=FixedClock(T0), node=0xABCDEF123456)
        a = uuid.UUID(gen.new_id())
        b = uuid.UUID(gen.new_id())

        assert a.node == b.node == 0xABCDEF123456

    def test_concurrent_generation_is_unique(self):
        gen = TimeOrderedIdGenerator(clock=FixedClock(T0))
        results = []
        lock = threading.Lock()

        def worker():
            local = [gen.new_id() for _ in range(500)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 4000
        assert len(set(results)) == 4000
