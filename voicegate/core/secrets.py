"""密钥解析

ProviderConfig 只保存密钥的名称，真正的值在请求时通过 SecretResolver 按名称取得。
适配器在构造时接收 resolver，测试中可以注入固定的假密钥。
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Mapping, Optional


class SecretResolver(ABC):
    @abstractmethod
    def get(self, name: Optional[str]) -> Optional[str]:
        raise NotImplementedError


class MappingSecretResolver(SecretResolver):
    """从映射中按名称读取密钥，默认读取进程环境变量"""

    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values = values if values is not None else os.environ

    def get(self, name: Optional[str]) -> Optional[str]:
        if not name:
            return None
        value = self._values.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None


def get_secret_resolver() -> SecretResolver:
    return MappingSecretResolver()
