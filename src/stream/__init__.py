"""
Stream Module - Redis Stream Writer
===================================

- connection: TLS/평문 연결 정책에 따른 클라이언트 생성
- writer: XADD append 및 에러 매핑
"""

from .connection import build_redis_client, load_trust_roots, parse_address
from .writer import RedisStreamWriter, StreamAppender

__all__ = [
    "build_redis_client",
    "load_trust_roots",
    "parse_address",
    "RedisStreamWriter",
    "StreamAppender",
]
