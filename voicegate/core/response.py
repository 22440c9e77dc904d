from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Any, Mapping, Optional
from uuid import uuid4

from fastapi.responses import JSONResponse

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(trace_id: str) -> Token[Optional[str]]:
    return _request_id_ctx.set(trace_id)


def reset_request_id(token: Token[Optional[str]]) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str:
    trace_id = _request_id_ctx.get()
    if trace_id:
        return trace_id
    return uuid4().hex


def _build_response(status_code: int, body: Mapping[str, Any]) -> JSONResponse:
    return JSONResponse(
        dict(body),
        status_code=status_code,
        headers={"X-Request-Id": get_request_id()},
    )


def success(data: Mapping[str, Any], status_code: int = 200) -> JSONResponse:
    return _build_response(status_code, data)


def error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return _build_response(status_code, {"error": message, **extra})


def raw(status_code: int, body: Mapping[str, Any]) -> JSONResponse:
    """按原样返回响应体（评测网关已组装好状态码与内容）"""
    return _build_response(status_code, body)
