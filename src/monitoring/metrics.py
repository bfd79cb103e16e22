import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

OUTCOMES = ("accepted", "too_large", "read_error", "serialization_error", "append_error")


class ProducerMetrics:
    """요청 처리 결과 Prometheus 메트릭 (인스턴스별 registry)"""

    def __init__(self, port: int = 0, registry: Optional[CollectorRegistry] = None):
        self.port = port
        self.registry = registry or CollectorRegistry()
        self.server_started = False

        # 1. 처리 결과 카운터 (outcome 라벨)
        self.requests_total = Counter(
            'producer_requests_total',
            'Ingested HTTP requests by outcome',
            ['outcome'],
            registry=self.registry,
        )

        # 2. 바디 크기 분포
        self.body_bytes = Histogram(
            'producer_body_bytes',
            'Accepted request body size in bytes',
            buckets=[0, 256, 1024, 4096, 16384, 65536, 262144, 1000000],
            registry=self.registry,
        )

        # 3. 스트림 append 지연
        self.append_latency = Histogram(
            'producer_append_latency_seconds',
            'Time spent appending an envelope to the stream',
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self.registry,
        )

        for outcome in OUTCOMES:
            self.requests_total.labels(outcome=outcome)

    def start_server(self):
        """Prometheus Exporter 서버 시작 (port 0이면 생략)"""
        if self.server_started or not self.port:
            return
        start_http_server(self.port, registry=self.registry)
        self.server_started = True
        logger.info(f"[Metrics] Prometheus server started on port {self.port}")

    def record_outcome(self, outcome: str):
        self.requests_total.labels(outcome=outcome).inc()

    def observe_body_size(self, size: int):
        self.body_bytes.observe(size)

    def observe_append_latency(self, seconds: float):
        self.append_latency.observe(seconds)

    def count(self, outcome: str) -> float:
        """현재 outcome 카운트 (테스트/디버깅용)"""
        value = self.registry.get_sample_value(
            'producer_requests_total', {'outcome': outcome}
        )
        return value or 0.0
