from __future__ import annotations

from voicegate.i18n.codes import ErrorCode


class BusinessError(Exception):
    def __init__(self, code: ErrorCode, **kwargs: str) -> None:
        super().__init__(str(code))
        self.code = code
        self.kwargs = kwargs

    @property
    def http_status(self) -> int:
        return self.code.http_status


class InsufficientBalance(BusinessError):
    pass


class QuotaConflict(BusinessError):
    def __init__(self, **kwargs: str) -> None:
        super().__init__(ErrorCode.QUOTA_UPDATE_CONFLICT, **kwargs)


class InvalidOrUsedCode(BusinessError):
    def __init__(self, **kwargs: str) -> None:
        super().__init__(ErrorCode.CODE_INVALID_OR_USED, **kwargs)


class CodeExpired(BusinessError):
    def __init__(self, **kwargs: str) -> None:
        super().__init__(ErrorCode.CODE_EXPIRED, **kwargs)


class RedemptionFailed(BusinessError):
    def __init__(self, **kwargs: str) -> None:
        super().__init__(ErrorCode.REDEMPTION_FAILED, **kwargs)


class ProviderError(BusinessError):
    """评测服务商调用失败

    子类区分失败类型，网关据此决定记录与响应方式；任何 ProviderError 都不计费。
    """

    default_code = ErrorCode.PROVIDER_UNAVAILABLE

    def __init__(self, reason: str, *, provider: str = "") -> None:
        super().__init__(self.default_code, reason=reason)
        self.reason = reason
        self.provider = provider

    def __str__(self) -> str:
        prefix = f"[{self.provider}] " if self.provider else ""
        return f"{prefix}{type(self).__name__}: {self.reason}"


class ProviderUnavailable(ProviderError):
    default_code = ErrorCode.PROVIDER_UNAVAILABLE


class AuthenticationFailed(ProviderError):
    default_code = ErrorCode.PROVIDER_AUTH_FAILED


class MalformedResponse(ProviderError):
    default_code = ErrorCode.PROVIDER_MALFORMED_RESPONSE


class Unsupported(ProviderError):
    default_code = ErrorCode.PROVIDER_UNSUPPORTED
