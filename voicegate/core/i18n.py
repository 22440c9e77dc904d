from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

from voicegate.i18n.codes import ErrorCode

DEFAULT_LOCALE = "zh"
SUPPORTED_LOCALES = ("zh", "en")

_LOCALE_DIR = Path(__file__).resolve().parents[1] / "i18n"
_CACHE: Dict[str, Dict[int, str]] = {}


def _load_locale_messages(locale: str) -> Dict[int, str]:
    if locale in _CACHE:
        return _CACHE[locale]
    if locale not in SUPPORTED_LOCALES:
        _CACHE[locale] = {}
        return _CACHE[locale]
    path = _LOCALE_DIR / f"{locale}.json"
    if not path.exists():
        _CACHE[locale] = {}
        return _CACHE[locale]
    data: object = json.loads(path.read_text(encoding="utf-8"))
    normalized: Dict[int, str] = {}
    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(key, str) and key.isdigit() and isinstance(value, str):
                normalized[int(key)] = value
    _CACHE[locale] = normalized
    return normalized


def normalize_locale(accept_language: str | None) -> str:
    """从 Accept-Language 中取语言前缀（zh-CN -> zh），不支持的回退到 zh"""
    if not accept_language:
        return DEFAULT_LOCALE
    lang = accept_language.split(",")[0].strip().lower().split("-")[0]
    return lang if lang in SUPPORTED_LOCALES else DEFAULT_LOCALE


def get_message(code: ErrorCode, locale: str, **kwargs: str) -> str:
    messages = _load_locale_messages(locale)
    template = messages.get(code.value)
    if template is None:
        template = _load_locale_messages(DEFAULT_LOCALE).get(code.value, "未知错误")
    # 缺失的占位参数置空，并去掉悬空的 ": "
    return template.format_map(_BlankMissing(kwargs)).rstrip(": ")


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""
