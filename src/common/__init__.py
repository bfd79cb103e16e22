"""
Common Module - Shared config and error types
=============================================

- config: 환경변수 기반 ProducerConfig
- errors: 요청/기동 에러 정의
"""

from .config import ProducerConfig, load_config
from .errors import (
    ProducerError,
    ConfigError,
    ConnectionSetupError,
    BodyTooLargeError,
    BodyReadError,
    EnvelopeSerializationError,
    StreamWriteError,
)

__all__ = [
    "ProducerConfig",
    "load_config",
    "ProducerError",
    "ConfigError",
    "ConnectionSetupError",
    "BodyTooLargeError",
    "BodyReadError",
    "EnvelopeSerializationError",
    "StreamWriteError",
]
