#!/usr/bin/env python3
"""
Producer Runner - HTTP → Redis Stream 수신 서버 실행기
======================================================

환경변수(.env 포함)로 설정을 읽고 Redis 연결을 준비한 뒤 uvicorn 으로
수신 서버를 띄운다. 설정/연결 준비 실패는 즉시 종료 (exit 1).

Usage:
    # 기본 실행 (0.0.0.0:8080)
    REDIS_ADDRESS=localhost:6379 REDIS_STREAM_NAME=requests \\
        python runners/producer_runner.py

    # 포트 / 메트릭 포트 지정
    python runners/producer_runner.py --port 8081 --metrics-port 9100

    # Redis 연결만 테스트
    python runners/producer_runner.py --test-connection

환경변수: REDIS_STREAM_NAME, REDIS_ADDRESS, REQUEST_SIZE_LIMIT, TLS_CERT,
         PRODUCER_HOST, PRODUCER_PORT, PRODUCER_ENVELOPE_FORMAT,
         PRODUCER_METRICS_PORT, LOG_LEVEL
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import uvicorn
from dotenv import load_dotenv

from src.common.config import ProducerConfig, load_config
from src.common.errors import ProducerError
from src.producer.app import create_app
from src.stream.writer import RedisStreamWriter

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """명령줄 인자 파싱 (환경변수보다 우선)"""
    parser = argparse.ArgumentParser(
        description='HTTP request to Redis stream producer',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        '--env-file',
        type=str,
        default='.env',
        help='환경변수 파일 경로 (없으면 무시)',
    )
    parser.add_argument(
        '--host',
        type=str,
        default=None,
        help='Bind host (기본: PRODUCER_HOST)',
    )
    parser.add_argument(
        '--port',
        type=int,
        default=None,
        help='Bind port (기본: PRODUCER_PORT)',
    )
    parser.add_argument(
        '--metrics-port',
        type=int,
        default=None,
        help='Prometheus 포트, 0이면 비활성화 (기본: PRODUCER_METRICS_PORT)',
    )
    parser.add_argument(
        '--test-connection',
        action='store_true',
        help='Redis 연결만 테스트',
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='디버그 로깅 활성화',
    )
    return parser.parse_args(argv)


def build_config(args) -> ProducerConfig:
    """환경변수 설정에 CLI override 적용"""
    config = load_config()
    overrides = {}
    if args.host is not None:
        overrides['host'] = args.host
    if args.port is not None:
        overrides['port'] = args.port
    if args.metrics_port is not None:
        overrides['metrics_port'] = args.metrics_port
    if overrides:
        config = dataclasses.replace(config, **overrides).validate()
    return config


def setup_logging(level: str, debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level, logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    if debug:
        logging.getLogger('redis').setLevel(logging.DEBUG)


async def test_connection(writer: RedisStreamWriter) -> bool:
    """Redis 연결 테스트"""
    ok = await writer.ping()
    if ok:
        logger.info("Redis connection test: SUCCESS")
    else:
        logger.error("Redis connection test: FAILED")
    await writer.close()
    return ok


def main(argv=None) -> int:
    """메인 함수"""
    args = parse_args(argv)
    load_dotenv(args.env_file)

    try:
        config = build_config(args)
    except ProducerError as e:
        setup_logging('INFO')
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.log_level, args.debug)

    # Redis 클라이언트 준비 (주소 파싱 실패는 치명적)
    try:
        writer = RedisStreamWriter.connect(config.redis_address, config.tls_cert)
    except ProducerError as e:
        logger.error(f"Failed to set up redis connection: {e}")
        return 1

    if args.test_connection:
        return 0 if asyncio.run(test_connection(writer)) else 1

    app = create_app(config, writer)

    logger.info(f"Starting producer on http://{config.host}:{config.port}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower() if not args.debug else 'debug',
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
