from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from voicegate.config import settings
from voicegate.core.exceptions import BusinessError
from voicegate.i18n.codes import ErrorCode


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin" or self.user_id in settings.admin_user_ids()


def _get_jwt_config() -> tuple[str, str]:
    secret = settings.JWT_SECRET
    algorithm = settings.JWT_ALGORITHM
    if not secret or not algorithm:
        raise RuntimeError("JWT_SECRET or JWT_ALGORITHM is not set")
    return secret, algorithm


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise BusinessError(ErrorCode.AUTH_TOKEN_NOT_PROVIDED)
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise BusinessError(ErrorCode.AUTH_TOKEN_INVALID)
    return token


def decode_access_token(token: str) -> dict[str, object]:
    if not token:
        raise BusinessError(ErrorCode.AUTH_TOKEN_NOT_PROVIDED)
    secret, algorithm = _get_jwt_config()
    try:
        payload: dict[str, object] = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"verify_aud": False},
        )
        return payload
    except ExpiredSignatureError as exc:
        raise BusinessError(ErrorCode.AUTH_TOKEN_EXPIRED) from exc
    except JWTError as exc:
        raise BusinessError(ErrorCode.AUTH_TOKEN_INVALID) from exc


class IdentityProvider(ABC):
    """把入站凭证解析成稳定的用户身份，失败时抛出认证类 BusinessError"""

    @abstractmethod
    def resolve(self, authorization: Optional[str]) -> Identity:
        raise NotImplementedError


class JWTIdentityProvider(IdentityProvider):
    def resolve(self, authorization: Optional[str]) -> Identity:
        token = extract_bearer_token(authorization)
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise BusinessError(ErrorCode.AUTH_TOKEN_INVALID)
        role = payload.get("role")
        return Identity(user_id=subject, role=role if isinstance(role, str) else None)


def create_access_token(user_id: str, role: Optional[str] = None, **claims: object) -> str:
    """签发访问令牌（测试与运维脚本使用，生产环境由身份服务签发）"""
    secret, algorithm = _get_jwt_config()
    payload: dict[str, object] = {"sub": user_id, **claims}
    if role:
        payload["role"] = role
    return jwt.encode(payload, secret, algorithm=algorithm)
