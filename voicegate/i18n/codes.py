from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    # 通用
    INVALID_PARAMETER = 40000
    PERMISSION_DENIED = 40300
    INTERNAL_SERVER_ERROR = 50000

    # 认证
    AUTH_TOKEN_NOT_PROVIDED = 40100
    AUTH_TOKEN_INVALID = 40101
    AUTH_TOKEN_EXPIRED = 40102

    # 额度
    INSUFFICIENT_STANDARD_MINUTES = 40200
    INSUFFICIENT_PROFESSIONAL_MINUTES = 40201
    QUOTA_UPDATE_CONFLICT = 50020
    BILLING_FAILED = 50021
    QUOTA_LOOKUP_FAILED = 50022

    # 评测服务商
    PROVIDER_NOT_FOUND = 40400
    PROVIDER_UNAVAILABLE = 50300
    PROVIDER_AUTH_FAILED = 50301
    PROVIDER_MALFORMED_RESPONSE = 50302
    PROVIDER_UNSUPPORTED = 50303
    ASSESSMENT_NOT_CHARGED = 50310

    # 授权码
    CODE_REQUIRED = 40010
    CODE_INVALID_OR_USED = 40011
    CODE_EXPIRED = 40012
    REDEMPTION_FAILED = 50010

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS.get(self, 500)


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_PARAMETER: 400,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.AUTH_TOKEN_NOT_PROVIDED: 401,
    ErrorCode.AUTH_TOKEN_INVALID: 401,
    ErrorCode.AUTH_TOKEN_EXPIRED: 401,
    ErrorCode.INSUFFICIENT_STANDARD_MINUTES: 402,
    ErrorCode.INSUFFICIENT_PROFESSIONAL_MINUTES: 402,
    ErrorCode.PROVIDER_NOT_FOUND: 404,
    ErrorCode.CODE_REQUIRED: 400,
    ErrorCode.CODE_INVALID_OR_USED: 400,
    ErrorCode.CODE_EXPIRED: 400,
}
