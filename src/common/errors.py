"""
Producer Errors
===============

요청 수신 → 스트림 기록 경로에서 발생하는 예외 정의
- 요청 단위 에러: 핸들러가 잡아서 500 응답 + 로그로 변환
- 기동 에러: 러너까지 전파되어 프로세스 종료
"""

from typing import Optional


class ProducerErrorCodes:
    """ProducerError 에러 코드"""

    CONFIG_INVALID = "CONFIG_INVALID"
    CONNECTION_SETUP_FAILED = "CONNECTION_SETUP_FAILED"
    BODY_TOO_LARGE = "BODY_TOO_LARGE"
    BODY_READ_FAILED = "BODY_READ_FAILED"
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
    APPEND_FAILED = "APPEND_FAILED"


class ProducerError(Exception):
    """Producer 에러 기본 클래스"""

    code = "PRODUCER_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


# ============================================
# 기동 에러 (fatal)
# ============================================
class ConfigError(ProducerError):
    """환경변수 설정 누락/형식 오류"""

    code = ProducerErrorCodes.CONFIG_INVALID


class ConnectionSetupError(ProducerError):
    """Redis 주소 파싱 실패 등 연결 준비 실패"""

    code = ProducerErrorCodes.CONNECTION_SETUP_FAILED


# ============================================
# 요청 단위 에러
# ============================================
class BodyTooLargeError(ProducerError):
    """요청 바디가 REQUEST_SIZE_LIMIT 초과"""

    code = ProducerErrorCodes.BODY_TOO_LARGE

    def __init__(self, limit: int):
        super().__init__(f"request body too large (limit={limit} bytes)")
        self.limit = limit


class BodyReadError(ProducerError):
    """클라이언트 연결 끊김 등 바디 읽기 실패"""

    code = ProducerErrorCodes.BODY_READ_FAILED


class EnvelopeSerializationError(ProducerError):
    """Envelope 직렬화 실패 (프로그래밍 결함)"""

    code = ProducerErrorCodes.SERIALIZATION_FAILED


class StreamWriteError(ProducerError):
    """스트림 append 실패. 식별자와 원인을 함께 보관한다."""

    code = ProducerErrorCodes.APPEND_FAILED

    def __init__(self, envelope_id: str, cause: BaseException):
        super().__init__(f"failed to publish {envelope_id!r}: {cause}", cause=cause)
        self.envelope_id = envelope_id
