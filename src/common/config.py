"""
Producer Configuration
======================

환경변수로 설정 가능한 Producer 설정
- 프로세스 시작 시 한 번 로드, 이후 읽기 전용 (frozen)
- 전역 싱글턴 대신 create_app / 러너에 명시적으로 전달
"""

import os
from dataclasses import dataclass, field

from src.common.errors import ConfigError

# REQUEST_SIZE_LIMIT 기본값 (1MB)
BYTES_IN_MB = 1_000_000

ENVELOPE_FORMATS = ("json", "msgpack")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}", cause=e) from e


@dataclass(frozen=True)
class ProducerConfig:
    """Redis 스트림 연결 및 HTTP 수신 설정"""

    # Stream
    stream_name: str = field(
        default_factory=lambda: os.getenv("REDIS_STREAM_NAME", "")
    )
    redis_address: str = field(
        default_factory=lambda: os.getenv("REDIS_ADDRESS", "")
    )

    # Request body 상한 (bytes)
    request_size_limit: int = field(
        default_factory=lambda: _env_int("REQUEST_SIZE_LIMIT", str(BYTES_IN_MB))
    )

    # Security (optional) - PEM 루트 인증서가 있으면 TLS 연결
    tls_cert: str = field(
        default_factory=lambda: os.getenv("TLS_CERT", "")
    )

    # HTTP Server
    host: str = field(
        default_factory=lambda: os.getenv("PRODUCER_HOST", "0.0.0.0")
    )
    port: int = field(
        default_factory=lambda: _env_int("PRODUCER_PORT", "8080")
    )

    # Envelope wire format (json | msgpack)
    envelope_format: str = field(
        default_factory=lambda: os.getenv("PRODUCER_ENVELOPE_FORMAT", "json").strip().lower()
    )

    # Monitoring (0이면 비활성화)
    metrics_port: int = field(
        default_factory=lambda: _env_int("PRODUCER_METRICS_PORT", "0")
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").strip().upper()
    )

    @property
    def tls_enabled(self) -> bool:
        """TLS_CERT 값이 설정되어 있는지 (파싱 가능 여부는 connection에서 판단)"""
        return bool(self.tls_cert.strip())

    def validate(self) -> "ProducerConfig":
        """필수값/범위 검증. 문제가 있으면 ConfigError"""
        if not self.stream_name:
            raise ConfigError("REDIS_STREAM_NAME is required")
        if not self.redis_address:
            raise ConfigError("REDIS_ADDRESS is required")
        if self.request_size_limit < 0:
            raise ConfigError(
                f"REQUEST_SIZE_LIMIT must be >= 0, got {self.request_size_limit}"
            )
        if not 0 < self.port < 65536:
            raise ConfigError(f"PRODUCER_PORT out of range: {self.port}")
        if not 0 <= self.metrics_port < 65536:
            raise ConfigError(f"PRODUCER_METRICS_PORT out of range: {self.metrics_port}")
        if self.envelope_format not in ENVELOPE_FORMATS:
            raise ConfigError(
                f"PRODUCER_ENVELOPE_FORMAT must be one of {ENVELOPE_FORMATS}, "
                f"got {self.envelope_format!r}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL must be one of {LOG_LEVELS}, got {self.log_level!r}")
        return self


def load_config() -> ProducerConfig:
    """환경변수에서 설정을 읽고 검증하여 반환"""
    return ProducerConfig().validate()
