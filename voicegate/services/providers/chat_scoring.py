"""基于 chat-completions 的评分

generic_ai、openai_compatible、tencent_asr 三种适配器共用：
发送 system + user 两条消息，从回复文本中取出第一个 JSON 对象，转换为 AssessmentScores。
模型输出缺少必需分数时视为解析失败，不编造默认分数。
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

import httpx

from voicegate.core.exceptions import AuthenticationFailed, MalformedResponse, ProviderUnavailable
from voicegate.services.providers.base import AssessmentScores, WordScore, clamp_score, reference_tokens
from voicegate.services.providers.feedback import speech_feedback

logger = logging.getLogger("voicegate.services.providers.chat_scoring")

REQUIRED_SCORES = ("overall_score", "accuracy_score", "fluency_score", "completeness_score")

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def chat_completions_url(base_url: str) -> str:
    """api_endpoint 既可能是完整地址，也可能只是 base url"""
    url = base_url.rstrip("/")
    if url.endswith("/chat/completions"):
        return url
    return f"{url}/chat/completions"


async def request_completion(
    *,
    url: str,
    api_key: str,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    timeout: httpx.Timeout,
    provider: str,
) -> str:
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
    }
    headers = {"Authorization": f"Bearer {api_key}"}

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.HTTPError as exc:
        raise ProviderUnavailable(str(exc) or type(exc).__name__, provider=provider) from exc

    if response.status_code in (401, 403):
        raise AuthenticationFailed(f"http {response.status_code}", provider=provider)
    if response.status_code >= 400:
        logger.warning(
            "Chat completion failed: provider=%s status=%s body=%s",
            provider,
            response.status_code,
            response.text[:200],
        )
        raise ProviderUnavailable(f"http {response.status_code}", provider=provider)

    try:
        data = response.json()
    except ValueError as exc:
        raise MalformedResponse("response is not valid json", provider=provider) from exc

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponse("missing choices[0].message.content", provider=provider) from exc
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponse("empty completion", provider=provider)
    return content


def extract_json_object(content: str, provider: str) -> dict[str, Any]:
    match = _JSON_OBJECT.search(content)
    if match is None:
        raise MalformedResponse("no json object in completion", provider=provider)
    try:
        parsed = json.loads(match.group(0))
    except ValueError as exc:
        raise MalformedResponse("completion json is invalid", provider=provider) from exc
    if not isinstance(parsed, dict):
        raise MalformedResponse("completion json is not an object", provider=provider)
    return parsed


def _parse_words(raw: Any, reference_text: str) -> list[WordScore]:
    if not isinstance(raw, list):
        return []
    words: list[WordScore] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("word"):
            continue
        score = item.get("score", item.get("accuracy_score"))
        error_type = item.get("error_type")
        words.append(
            WordScore(
                word=str(item["word"]),
                accuracy_score=clamp_score(score),
                error_type=str(error_type) if error_type else None,
            )
        )
    # 模型可能编造多余的单词
    return words[: len(reference_tokens(reference_text))]


def scores_from_completion(
    content: str,
    *,
    reference_text: str,
    provider: str,
    is_simulated: bool,
    transcribed_text: Optional[str] = None,
) -> AssessmentScores:
    parsed = extract_json_object(content, provider)
    missing = [name for name in REQUIRED_SCORES if parsed.get(name) is None]
    if missing:
        raise MalformedResponse(f"missing {', '.join(missing)}", provider=provider)

    accuracy = clamp_score(parsed["accuracy_score"])
    fluency = clamp_score(parsed["fluency_score"])
    completeness = clamp_score(parsed["completeness_score"])
    words = _parse_words(parsed.get("word_scores") or parsed.get("words_result"), reference_text)

    feedback = parsed.get("feedback")
    if not isinstance(feedback, str) or not feedback.strip():
        feedback = speech_feedback(accuracy, fluency, completeness, words)

    pronunciation = parsed.get("pronunciation_score")
    return AssessmentScores(
        overall_score=clamp_score(parsed["overall_score"]),
        pronunciation_score=clamp_score(pronunciation) if pronunciation is not None else accuracy,
        accuracy_score=accuracy,
        fluency_score=fluency,
        completeness_score=completeness,
        feedback=feedback.strip(),
        words=words,
        transcribed_text=transcribed_text,
        is_simulated=is_simulated,
        raw_response=parsed,
    )
