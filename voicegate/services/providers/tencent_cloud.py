"""腾讯云 API 3.0 调用

不依赖 tencentcloud-sdk，直接用 httpx 发送 TC3-HMAC-SHA256 签名的 JSON 请求。
参与签名的头部固定为 content-type、host、x-tc-action（小写）。
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional

import httpx

from voicegate.core.exceptions import AuthenticationFailed, MalformedResponse, ProviderUnavailable
from voicegate.core.signing import tc3_authorization

logger = logging.getLogger("voicegate.services.providers.tencent_cloud")

_CONTENT_TYPE = "application/json; charset=utf-8"


def _is_auth_error(code: str) -> bool:
    return code.startswith("AuthFailure") or code.startswith("UnauthorizedOperation")


class TencentCloudClient:
    def __init__(
        self,
        *,
        service: str,
        version: str,
        region: str,
        secret_id: str,
        secret_key: str,
        provider: str,
        timeout: httpx.Timeout,
        host: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._service = service
        self._version = version
        self._region = region
        self._secret_id = secret_id
        self._secret_key = secret_key
        self._provider = provider
        self._timeout = timeout
        self._host = host or f"{service}.tencentcloudapi.com"
        self._clock = clock

    @property
    def host(self) -> str:
        return self._host

    def build_headers(self, action: str, payload: str, timestamp: int) -> dict[str, str]:
        authorization = tc3_authorization(
            secret_id=self._secret_id,
            secret_key=self._secret_key,
            service=self._service,
            headers={
                "content-type": _CONTENT_TYPE,
                "host": self._host,
                "x-tc-action": action.lower(),
            },
            payload=payload,
            timestamp=timestamp,
        )
        return {
            "Authorization": authorization,
            "Content-Type": _CONTENT_TYPE,
            "Host": self._host,
            "X-TC-Action": action,
            "X-TC-Version": self._version,
            "X-TC-Timestamp": str(timestamp),
            "X-TC-Region": self._region,
        }

    async def call(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        """发送请求并返回 Response 节点

        Response.Error 中以 AuthFailure 开头的错误视为认证失败，其余视为服务不可用。
        """
        payload = json.dumps(params, ensure_ascii=False, separators=(",", ":"))
        timestamp = int(self._clock())
        headers = self.build_headers(action, payload, timestamp)

        logger.info("Calling Tencent Cloud %s.%s (region=%s)", self._service, action, self._region)
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"https://{self._host}",
                    content=payload.encode("utf-8"),
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(str(exc) or type(exc).__name__, provider=self._provider) from exc

        if response.status_code in (401, 403):
            raise AuthenticationFailed(f"http {response.status_code}", provider=self._provider)
        if response.status_code >= 400:
            raise ProviderUnavailable(f"http {response.status_code}", provider=self._provider)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponse("response is not valid json", provider=self._provider) from exc

        result = data.get("Response") if isinstance(data, dict) else None
        if not isinstance(result, dict):
            raise MalformedResponse("missing Response", provider=self._provider)

        error = result.get("Error")
        if isinstance(error, dict):
            code = str(error.get("Code") or "")
            message = str(error.get("Message") or code or "unknown error")
            logger.warning(
                "Tencent Cloud %s.%s failed: code=%s request_id=%s",
                self._service,
                action,
                code,
                result.get("RequestId"),
            )
            if _is_auth_error(code):
                raise AuthenticationFailed(f"{code}: {message}", provider=self._provider)
            raise ProviderUnavailable(f"{code}: {message}", provider=self._provider)
        return result
