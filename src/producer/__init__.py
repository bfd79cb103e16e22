"""
Producer Module - HTTP Request Ingestion
========================================

HTTP 요청을 받아 Redis 스트림에 기록하는 수신 계층

Components:
- envelope: 요청 레코드 및 json/msgpack 직렬화
- idgen: 시간 순 식별자 생성기
- handler: 바디 상한 검사 → Envelope → append
- app: FastAPI 앱 팩토리
"""

from .envelope import Envelope, EnvelopeCodec
from .idgen import TimeOrderedIdGenerator
from .handler import IngestionHandler
from .app import create_app

__all__ = [
    "Envelope",
    "EnvelopeCodec",
    "TimeOrderedIdGenerator",
    "IngestionHandler",
    "create_app",
]
