"""
Producer HTTP App
=================

모든 path / 모든 method 를 하나의 핸들러로 받는 FastAPI 앱.

Responses:
  202 - 스트림 기록 완료 (빈 바디)
  500 - 바디 초과 / 읽기 실패 / 직렬화 실패 / append 실패 (빈 바디)

설정과 Writer는 create_app 호출 시 주입한다 (러너 또는 테스트).
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from starlette.responses import Response

from src.common.config import ProducerConfig
from src.monitoring.metrics import ProducerMetrics
from src.producer.envelope import EnvelopeCodec
from src.producer.handler import IngestionHandler
from src.producer.idgen import TimeOrderedIdGenerator
from src.stream.writer import StreamAppender

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    config: ProducerConfig,
    appender: StreamAppender,
    id_generator: Optional[TimeOrderedIdGenerator] = None,
    metrics: Optional[ProducerMetrics] = None,
) -> FastAPI:
    """설정/Writer를 주입받아 앱 생성"""
    metrics = metrics or ProducerMetrics(port=config.metrics_port)
    handler = IngestionHandler(
        config=config,
        appender=appender,
        id_generator=id_generator,
        codec=EnvelopeCodec(config.envelope_format),
        metrics=metrics,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """앱 시작 시 메트릭 서버 기동, 종료 시 Writer 해제"""
        logger.info(
            f"Producer ready: stream={config.stream_name} "
            f"limit={config.request_size_limit:,} bytes format={config.envelope_format}"
        )
        metrics.start_server()
        yield
        logger.info("Shutting down producer...")
        close = getattr(appender, "close", None)
        if close is not None:
            await close()

    app = FastAPI(
        title="Request Stream Producer",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.handler = handler
    app.state.config = config

    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def ingest(request: Request) -> Response:
        return await handler.handle(request)

    return app
