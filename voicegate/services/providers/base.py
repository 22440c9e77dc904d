from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Optional

import httpx

from voicegate.config import Settings, settings as default_settings
from voicegate.core.exceptions import AuthenticationFailed, MalformedResponse, ProviderUnavailable
from voicegate.core.secrets import SecretResolver
from voicegate.models.enums import ProviderType
from voicegate.models.provider_config import ProviderConfig


@dataclass(frozen=True)
class PhonemeScore:
    phoneme: str
    score: int


@dataclass(frozen=True)
class WordScore:
    word: str
    accuracy_score: int
    error_type: Optional[str] = None
    phonemes: Optional[list[PhonemeScore]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"word": self.word, "accuracy_score": self.accuracy_score}
        if self.error_type is not None:
            data["error_type"] = self.error_type
        if self.phonemes is not None:
            data["phonemes"] = [asdict(phoneme) for phoneme in self.phonemes]
        return data


@dataclass(frozen=True)
class AssessmentScores:
    """统一的评分结构，所有适配器的输出都转换为此格式"""

    overall_score: int
    pronunciation_score: int
    accuracy_score: int
    fluency_score: int
    completeness_score: int
    feedback: str
    words: list[WordScore] = field(default_factory=list)
    transcribed_text: Optional[str] = None
    is_simulated: bool = False
    raw_response: Optional[Any] = None


# 多读（原文中不存在）的单词
INSERTION = "Insertion"


def clamp_score(value: object) -> int:
    """把服务商返回的分数规整为 0-100 的整数，无法解析时记 0"""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        try:
            numeric = float(value)
        except ValueError:
            return 0
    else:
        return 0
    return int(min(100.0, max(0.0, round(numeric))))


def reference_tokens(reference_text: str) -> list[str]:
    return [token for token in reference_text.split() if token]


class AssessmentAdapter(ABC):
    """评测适配器基类

    子类通过 @register_adapter 注册，并在 assess 中：
    1. 根据统一输入构造服务商特定的认证请求
    2. 把服务商的响应解析为 AssessmentScores
    3. 无法完成时抛出 ProviderError 子类
    """

    provider_type: ClassVar[ProviderType]

    def __init__(
        self,
        config: ProviderConfig,
        secrets: SecretResolver,
        app_settings: Optional[Settings] = None,
    ) -> None:
        self._config = config
        self._secrets = secrets
        self._settings = app_settings or default_settings

    @property
    def provider(self) -> str:
        return self.provider_type.value

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def _option(self, key: str, fallback: Any = None) -> Any:
        options = self._config.config_json or {}
        value = options.get(key)
        return fallback if value is None else value

    def _require_secret(self, name: Optional[str], label: str) -> str:
        value = self._secrets.get(name)
        if not value:
            raise AuthenticationFailed(f"missing credential {label}", provider=self.provider)
        return value

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._settings.PROVIDER_HTTP_TIMEOUT)

    def _raise_for_status(self, response: httpx.Response) -> None:
        status_code = response.status_code
        if 200 <= status_code < 300:
            return
        body = response.text[:200] if response.text else ""
        if status_code in (401, 403):
            raise AuthenticationFailed(f"http {status_code} {body}".strip(), provider=self.provider)
        raise ProviderUnavailable(f"http {status_code} {body}".strip(), provider=self.provider)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse("response is not valid json", provider=self.provider) from exc

    @abstractmethod
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        raise NotImplementedError
