"""
Request Envelope
================

HTTP 요청 하나를 스트림에 올릴 레코드(Envelope)로 표현하고 직렬화
- json: 기존 consumer 호환 포맷 (id / url / body / header / method)
- msgpack: 바이너리 바디를 그대로 담는 포맷 (use_bin_type)

바디는 항상 원본 bytes로 보관한다. json 포맷에서 UTF-8이 아닌 바디는
base64로 인코딩하고 "bodyEncoding": "base64" 키를 추가한다.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

import msgpack

from src.common.errors import EnvelopeSerializationError

logger = logging.getLogger(__name__)

BODY_ENCODING_KEY = "bodyEncoding"
BODY_ENCODING_BASE64 = "base64"


def canonical_header_key(name: str) -> str:
    """
    헤더 이름을 MIME canonical 형태로 변환

    "content-type" -> "Content-Type", "x-request-id" -> "X-Request-Id".
    공백이나 토큰 외 문자, ASCII 밖 문자가 있으면 원본 그대로 반환한다.
    """
    if not name or not name.isascii() or any(c.isspace() or c in '"(),/:;<=>?@[\\]{}' for c in name):
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def decode_header_text(raw: bytes) -> str:
    """헤더/path 바이트를 UTF-8로 디코딩 (유효하지 않으면 latin-1)"""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def build_header_map(raw_headers: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    """(name, value) 목록을 canonical 이름 -> 값 리스트로 묶음 (도착 순서 유지)"""
    header: Dict[str, List[str]] = {}
    for name, value in raw_headers:
        header.setdefault(canonical_header_key(name), []).append(value)
    return header


@dataclass(frozen=True)
class Envelope:
    """스트림에 기록되는 요청 레코드"""

    id: str
    url: str
    body: bytes
    method: str
    header: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self, binary_body: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "header": {k: list(v) for k, v in self.header.items()},
            "method": self.method,
        }
        if binary_body:
            data["body"] = bytes(self.body)
            return data

        try:
            data["body"] = self.body.decode("utf-8")
        except UnicodeDecodeError:
            data["body"] = base64.b64encode(self.body).decode("ascii")
            data[BODY_ENCODING_KEY] = BODY_ENCODING_BASE64
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Envelope":
        body = data.get("body", b"")
        if isinstance(body, str):
            if data.get(BODY_ENCODING_KEY) == BODY_ENCODING_BASE64:
                body = base64.b64decode(body.encode("ascii"), validate=True)
            else:
                body = body.encode("utf-8")

        return cls(
            id=data["id"],
            url=data["url"],
            body=bytes(body),
            method=data["method"],
            header={k: list(v) for k, v in (data.get("header") or {}).items()},
        )


class EnvelopeCodec:
    """
    Envelope <-> bytes 변환기

    Usage:
        codec = EnvelopeCodec("json")
        payload = codec.encode(envelope)
        assert codec.decode(payload) == envelope
    """

    def __init__(self, fmt: str = "json"):
        if fmt not in ("json", "msgpack"):
            raise ValueError(f"unsupported envelope format: {fmt!r}")
        self.format = fmt

    def encode(self, envelope: Envelope) -> bytes:
        try:
            if self.format == "msgpack":
                return msgpack.packb(envelope.to_dict(binary_body=True), use_bin_type=True)
            return json.dumps(
                envelope.to_dict(),
                ensure_ascii=False,
                separators=(",", ":"),
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EnvelopeSerializationError(
                f"failed to encode envelope {envelope.id!r} as {self.format}", cause=e
            ) from e

    def decode(self, payload: bytes) -> Envelope:
        try:
            if self.format == "msgpack":
                data = msgpack.unpackb(payload, raw=False)
            else:
                data = json.loads(payload)
            return Envelope.from_dict(data)
        except (KeyError, TypeError, ValueError, binascii.Error, msgpack.ExtraData) as e:
            raise EnvelopeSerializationError(
                f"failed to decode {self.format} envelope", cause=e
            ) from e
