"""
Redis Connection Setup
======================

프로세스 시작 시 한 번 Redis 클라이언트를 생성
- TLS_CERT에 파싱 가능한 PEM 인증서가 있으면: 해당 인증서를 trust root로 TLS 연결
- 없거나 파싱 불가: 같은 주소로 평문 연결
- 주소 파싱 실패는 ConnectionSetupError (기동 실패)

주소 형식:
- host:port / host / [ipv6]:port
- redis://[user:pass@]host:port/db, rediss://..., unix:///path
"""

import logging
import ssl
from typing import Any, Dict, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.connection import (
    Connection,
    SSLConnection,
    UnixDomainSocketConnection,
    parse_url,
)

from src.common.errors import ConnectionSetupError

logger = logging.getLogger(__name__)

DEFAULT_REDIS_PORT = 6379


def load_trust_roots(pem: Optional[str]) -> Optional[str]:
    """
    PEM 문자열에 인증서가 하나 이상 파싱되면 그대로 반환, 아니면 None

    Args:
        pem: TLS_CERT 환경변수 값
    """
    if not pem or not pem.strip():
        return None

    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    try:
        context.load_verify_locations(cadata=pem)
    except (ssl.SSLError, ValueError) as e:
        logger.warning(f"TLS_CERT could not be parsed: {e}")
        return None

    if not context.get_ca_certs():
        return None
    return pem


def parse_address(address: str) -> Dict[str, Any]:
    """
    Redis 주소를 ConnectionPool 인자로 변환

    Raises:
        ConnectionSetupError: 형식 오류
    """
    address = (address or "").strip()
    if not address:
        raise ConnectionSetupError("redis address is empty")

    if "://" in address:
        try:
            return parse_url(address)
        except ValueError as e:
            raise ConnectionSetupError(f"invalid redis address {address!r}: {e}", cause=e) from e

    host, port = address, str(DEFAULT_REDIS_PORT)
    if address.startswith("["):
        # [ipv6]:port
        end = address.find("]")
        if end == -1:
            raise ConnectionSetupError(f"invalid redis address {address!r}")
        host = address[1:end]
        rest = address[end + 1:]
        if rest:
            if not rest.startswith(":"):
                raise ConnectionSetupError(f"invalid redis address {address!r}")
            port = rest[1:]
    elif address.count(":") == 1:
        host, port = address.split(":", 1)

    if not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ConnectionSetupError(f"invalid redis address {address!r}")

    return {"host": host, "port": int(port)}


def build_redis_client(address: str, tls_cert: str = "") -> Redis:
    """
    TLS 정책에 따라 redis.asyncio 클라이언트 생성

    연결은 첫 명령 시점에 맺어진다 (ConnectionPool lazy connect).
    """
    kwargs = parse_address(address)
    roots = load_trust_roots(tls_cert)

    if roots is not None:
        logger.info("found a cert, connecting to redis with TLS")
        if kwargs.get("connection_class") is UnixDomainSocketConnection:
            raise ConnectionSetupError("TLS is not supported for unix socket addresses")
        kwargs.update(
            connection_class=SSLConnection,
            ssl_ca_data=roots,
            ssl_cert_reqs="required",
        )
    else:
        logger.info("no usable cert, connecting to redis without TLS")
        if kwargs.get("connection_class") is SSLConnection:
            logger.warning("rediss:// address without a usable TLS_CERT, using a plain connection")
            kwargs["connection_class"] = Connection
        kwargs.setdefault("connection_class", Connection)

    return Redis.from_pool(ConnectionPool(**kwargs))
