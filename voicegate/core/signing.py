"""请求签名工具

纯函数实现，无状态、无 I/O。TC3-HMAC-SHA256 的规范请求拼接顺序必须与腾讯云文档逐字节一致：

    CanonicalRequest =
        HTTPRequestMethod + '\\n' +
        CanonicalURI + '\\n' +
        CanonicalQueryString + '\\n' +
        CanonicalHeaders + '\\n' +
        SignedHeaders + '\\n' +
        HashedRequestPayload

签名密钥按 日期 -> 服务 -> "tc3_request" 逐级派生，再对 StringToSign 做 HMAC。
"""

from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Mapping, Union

TC3_ALGORITHM = "TC3-HMAC-SHA256"
TC3_TERMINATOR = "tc3_request"

Key = Union[str, bytes]


def _to_bytes(value: Key) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def sha256_hex(message: Key) -> str:
    return hashlib.sha256(_to_bytes(message)).hexdigest()


def hmac_sha256(key: Key, message: Key) -> bytes:
    return hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256).digest()


def hmac_sha256_hex(key: Key, message: Key) -> str:
    return hmac.new(_to_bytes(key), _to_bytes(message), hashlib.sha256).hexdigest()


def utc_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """返回 (CanonicalHeaders, SignedHeaders)

    头部名称小写并按字典序排列，值去掉首尾空白；每个头部以换行结尾。
    """
    normalized = sorted((name.strip().lower(), value.strip()) for name, value in headers.items())
    canonical = "".join(f"{name}:{value}\n" for name, value in normalized)
    signed = ";".join(name for name, _ in normalized)
    return canonical, signed


def canonical_request(
    method: str,
    uri: str,
    query: str,
    headers: Mapping[str, str],
    payload: Key,
) -> tuple[str, str]:
    """返回 (CanonicalRequest, SignedHeaders)"""
    canonical, signed = canonical_headers(headers)
    request = "\n".join(
        [method.upper(), uri, query, canonical, signed, sha256_hex(payload)]
    )
    return request, signed


def credential_scope(date: str, service: str) -> str:
    return f"{date}/{service}/{TC3_TERMINATOR}"


def string_to_sign(timestamp: int, scope: str, canonical: str) -> str:
    return "\n".join([TC3_ALGORITHM, str(timestamp), scope, sha256_hex(canonical)])


def derive_signing_key(secret_key: str, date: str, service: str) -> bytes:
    secret_date = hmac_sha256(f"TC3{secret_key}", date)
    secret_service = hmac_sha256(secret_date, service)
    return hmac_sha256(secret_service, TC3_TERMINATOR)


def tc3_authorization(
    *,
    secret_id: str,
    secret_key: str,
    service: str,
    headers: Mapping[str, str],
    payload: Key,
    timestamp: int,
    method: str = "POST",
    uri: str = "/",
    query: str = "",
) -> str:
    """生成腾讯云 API 3.0 的 Authorization 头

    headers 只需包含参与签名的头部（通常是 content-type、host、x-tc-action）。
    """
    date = utc_date(timestamp)
    scope = credential_scope(date, service)
    request, signed = canonical_request(method, uri, query, headers, payload)
    signature = hmac_sha256_hex(
        derive_signing_key(secret_key, date, service),
        string_to_sign(timestamp, scope, request),
    )
    return (
        f"{TC3_ALGORITHM} Credential={secret_id}/{scope}, "
        f"SignedHeaders={signed}, Signature={signature}"
    )
