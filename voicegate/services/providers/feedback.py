"""根据分数生成中文反馈（供应商本身不返回文字建议时使用）"""

from __future__ import annotations

from typing import Optional, Sequence

from voicegate.services.providers.base import WordScore

WEAK_WORD_THRESHOLD = 60
MAX_WEAK_WORDS = 5


def weak_words(words: Sequence[WordScore]) -> list[str]:
    return [item.word for item in words if item.accuracy_score < WEAK_WORD_THRESHOLD][:MAX_WEAK_WORDS]


def speech_feedback(
    accuracy: Optional[float],
    fluency: Optional[float],
    completeness: Optional[float],
    words: Sequence[WordScore],
) -> str:
    parts: list[str] = []
    if accuracy is not None:
        if accuracy >= 90:
            parts.append("发音非常准确！")
        elif accuracy >= 70:
            parts.append("发音基本准确，继续练习。")
        else:
            parts.append("发音需要加强练习。")
    if fluency is not None and fluency < 70:
        parts.append("语速可以更加流畅自然。")
    if completeness is not None and completeness < 90:
        parts.append("注意完整朗读所有内容。")

    weak = weak_words(words)
    if weak:
        parts.append(f"需要重点练习: {', '.join(weak)}")
    return " ".join(parts)


def oral_feedback(suggested: Optional[float], words: Sequence[WordScore]) -> str:
    parts: list[str] = []
    if suggested is not None:
        if suggested >= 90:
            parts.append("发音非常标准！")
        elif suggested >= 70:
            parts.append("发音良好，继续保持。")
        else:
            parts.append("建议多加练习。")

    weak = weak_words(words)
    if weak:
        parts.append(f"注意以下单词发音: {', '.join(weak)}")
    return " ".join(parts)
