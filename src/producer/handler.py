"""
Ingestion Handler
=================

HTTP 요청 → Envelope → Redis 스트림 append → 202 응답

처리 순서:
1. 바디 크기 상한 검사 (초과 시 즉시 실패, 부분 읽기 폐기)
2. 시간 순 식별자 발급
3. Async-Original-Host 헤더 + 원본 path/query 로 URL 재구성
4. Envelope 생성 및 직렬화
5. StreamAppender.append 호출 (재시도 없음)

모든 실패는 빈 바디의 500 응답 + 로그 한 줄로 끝난다.

Async-Original-Host 헤더는 검증하지 않는다. 신뢰할 수 있는 reverse proxy
뒤에 배치되어 해당 헤더를 proxy가 설정한다는 것이 배포 전제 조건이다.
"""

import logging
import time
from typing import List, Optional, Tuple

from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response

from src.common.config import ProducerConfig
from src.common.errors import (
    BodyReadError,
    BodyTooLargeError,
    EnvelopeSerializationError,
    StreamWriteError,
)
from src.monitoring.metrics import ProducerMetrics
from src.producer.envelope import (
    Envelope,
    EnvelopeCodec,
    build_header_map,
    decode_header_text,
)
from src.producer.idgen import TimeOrderedIdGenerator
from src.stream.writer import StreamAppender

logger = logging.getLogger(__name__)

ORIGINAL_HOST_HEADER = "Async-Original-Host"

STATUS_ACCEPTED = 202
STATUS_SERVER_ERROR = 500


async def read_limited_body(request: Request, limit: int) -> bytes:
    """
    요청 바디를 limit 바이트까지만 읽음

    Content-Length가 limit을 넘으면 읽기 전에 실패하고, 스트리밍 중
    누적 크기가 limit을 넘는 순간 중단한다. 정확히 limit 바이트는 허용.

    Raises:
        BodyTooLargeError: 상한 초과
        BodyReadError: 연결 끊김 등 전송 오류
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise BodyTooLargeError(limit)

    chunks = []
    received = 0
    try:
        async for chunk in request.stream():
            if not chunk:
                continue
            received += len(chunk)
            if received > limit:
                raise BodyTooLargeError(limit)
            chunks.append(chunk)
    except ClientDisconnect as e:
        raise BodyReadError("client disconnected while reading body", cause=e) from e
    except OSError as e:
        raise BodyReadError(f"error reading body: {e}", cause=e) from e

    return b"".join(chunks)


def decoded_headers(request: Request) -> List[Tuple[str, str]]:
    """ASGI scope의 원본 헤더 바이트를 (name, value) 문자열 목록으로 (UTF-8 우선)"""
    return [
        (decode_header_text(name), decode_header_text(value))
        for name, value in request.scope.get("headers", [])
    ]


def reconstruct_url(request: Request, headers: Optional[List[Tuple[str, str]]] = None) -> str:
    """"http://" + Async-Original-Host + 원본 path(?query)"""
    if headers is None:
        headers = decoded_headers(request)
    wanted = ORIGINAL_HOST_HEADER.lower()
    original_host = next((value for name, value in headers if name.lower() == wanted), "")

    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = decode_header_text(raw_path)
    else:
        path = request.scope.get("path", "/")

    # raw_path는 서버에 따라 query를 포함하지 않음
    if "?" not in path:
        query = decode_header_text(request.scope.get("query_string", b""))
        if query:
            path = f"{path}?{query}"

    return f"http://{original_host}{path}"


class IngestionHandler:
    """
    요청 한 건을 스트림 레코드로 변환하여 기록하는 핸들러

    config / appender / id 생성기 / codec 을 생성 시점에 주입받는다.
    """

    def __init__(
        self,
        config: ProducerConfig,
        appender: StreamAppender,
        id_generator: Optional[TimeOrderedIdGenerator] = None,
        codec: Optional[EnvelopeCodec] = None,
        metrics: Optional[ProducerMetrics] = None,
    ):
        self.config = config
        self.appender = appender
        self.id_generator = id_generator or TimeOrderedIdGenerator()
        self.codec = codec or EnvelopeCodec(config.envelope_format)
        self.metrics = metrics or ProducerMetrics()

    async def handle(self, request: Request) -> Response:
        try:
            body = await read_limited_body(request, self.config.request_size_limit)
        except BodyTooLargeError as e:
            logger.info(f"HTTP request body too large: {e}")
            self.metrics.record_outcome("too_large")
            return Response(status_code=STATUS_SERVER_ERROR)
        except BodyReadError as e:
            logger.warning(f"Error reading request body: {e}")
            self.metrics.record_outcome("read_error")
            return Response(status_code=STATUS_SERVER_ERROR)

        self.metrics.observe_body_size(len(body))

        headers = decoded_headers(request)
        envelope = Envelope(
            id=self.id_generator.new_id(),
            url=reconstruct_url(request, headers),
            body=body,
            method=request.method,
            header=build_header_map(headers),
        )

        try:
            payload = self.codec.encode(envelope)
        except EnvelopeSerializationError as e:
            logger.error(f"Failed to marshal request {envelope.id}: {e}", exc_info=True)
            self.metrics.record_outcome("serialization_error")
            return Response(status_code=STATUS_SERVER_ERROR)

        start = time.perf_counter()
        try:
            await self.appender.append(self.config.stream_name, payload, envelope.id)
        except StreamWriteError as e:
            logger.error(f"Error asynchronous writing request to storage: {e}")
            self.metrics.record_outcome("append_error")
            return Response(status_code=STATUS_SERVER_ERROR)
        except Exception:
            logger.exception(f"Unexpected error writing request {envelope.id} to storage")
            self.metrics.record_outcome("append_error")
            return Response(status_code=STATUS_SERVER_ERROR)
        finally:
            self.metrics.observe_append_latency(time.perf_counter() - start)

        logger.info(f"request accepted: {envelope.id}")
        self.metrics.record_outcome("accepted")
        return Response(status_code=STATUS_ACCEPTED)
