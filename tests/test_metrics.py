"""
ProducerMetrics 테스트
"""

from src.monitoring.metrics import OUTCOMES, ProducerMetrics


class TestProducerMetrics:
    """메트릭 기록 테스트"""

    def test_outcomes_start_at_zero(self):
        metrics = ProducerMetrics()

        for outcome in OUTCOMES:
            assert metrics.registry.get_sample_value(
                'producer_requests_total', {'outcome': outcome}
            ) == 0.0

    def test_instances_do_not_share_registry(self):
        a, b = ProducerMetrics(), ProducerMetrics()
        a.record_outcome("accepted")

        assert a.count("accepted") == 1
        assert b.count("accepted") == 0

    def test_histograms(self):
        metrics = ProducerMetrics()
        metrics.observe_body_size(300)
        metrics.observe_append_latency(0.002)

        assert metrics.registry.get_sample_value('producer_body_bytes_count') == 1
        assert metrics.registry.get_sample_value('producer_body_bytes_sum') == 300
        assert metrics.registry.get_sample_value(
            'producer_append_latency_seconds_bucket', {'le': '0.005'}
        ) == 1

    def test_zero_port_skips_server(self):
        metrics = ProducerMetrics(port=0)
        metrics.start_server()

        assert metrics.server_started is False
