from __future__ import annotations

import base64
import json

import pytest

from voicegate.config import settings
from voicegate.core.exceptions import AuthenticationFailed, MalformedResponse, ProviderUnavailable, Unsupported
from voicegate.core.secrets import MappingSecretResolver
from voicegate.models.enums import AssessmentTier
from voicegate.models.provider_config import ProviderConfig
from voicegate.services.provider_selector import fallback_provider
from voicegate.services.providers import create_adapter
from voicegate.services.providers.chat_scoring import chat_completions_url, extract_json_object
from voicegate.services.providers.generic_ai import GenericAIAdapter
from voicegate.services.providers.ifly import IFlyAdapter
from voicegate.services.providers.openai_compatible import OpenAICompatibleAdapter
from voicegate.services.providers.tencent_asr import TencentASRAdapter


def _completion(content: str) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


_SCORES = {
    "overall_score": 82,
    "accuracy_score": 80,
    "fluency_score": 85,
    "completeness_score": 90,
    "feedback": "整体不错，注意 th 的发音。",
    "word_scores": [
        {"word": "think", "score": 55, "error_type": "Mispronunciation"},
        {"word": "about", "score": 90},
        {"word": "it", "score": 95},
        {"word": "extra", "score": 70},
    ],
}


def _generic_adapter(secrets: dict[str, str] | None = None) -> GenericAIAdapter:
    resolver = MappingSecretResolver({"LOVABLE_API_KEY": "gateway-key"} if secrets is None else secrets)
    return GenericAIAdapter(fallback_provider(AssessmentTier.STANDARD), resolver)


def test_chat_completions_url() -> None:
    assert chat_completions_url("https://api.example.com/v1") == "https://api.example.com/v1/chat/completions"
    assert (
        chat_completions_url("https://api.example.com/v1/chat/completions/")
        == "https://api.example.com/v1/chat/completions"
    )


def test_extract_json_object_from_fenced_text() -> None:
    content = '好的，结果如下：\n```json\n{"overall_score": 70}\n```'

    assert extract_json_object(content, "generic_ai") == {"overall_score": 70}


@pytest.mark.asyncio
async def test_generic_ai_simulates_scores(fake_http) -> None:
    fake_http.queue(_completion("```json\n" + json.dumps(_SCORES, ensure_ascii=False) + "\n```"))

    scores = await _generic_adapter().assess(b"", "think about it", "en-US")

    assert scores.is_simulated is True
    assert scores.overall_score == 82
    assert scores.pronunciation_score == 80
    assert scores.feedback == "整体不错，注意 th 的发音。"
    # 模型多给的单词被截断到原文长度
    assert [word.word for word in scores.words] == ["think", "about", "it"]
    assert scores.words[0].error_type == "Mispronunciation"

    request = fake_http.requests[0]
    assert request["url"] == f"{settings.AI_GATEWAY_BASE_URL}/chat/completions"
    assert request["headers"] == {"Authorization": "Bearer gateway-key"}
    assert request["json"]["model"] == settings.AI_GATEWAY_MODEL
    assert request["json"]["temperature"] == 0.5
    assert 'think about it' in request["json"]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_generic_ai_missing_key(fake_http) -> None:
    with pytest.raises(AuthenticationFailed):
        await _generic_adapter(secrets={}).assess(b"", "think about it", "en-US")

    assert fake_http.calls == 0


@pytest.mark.asyncio
async def test_generic_ai_missing_scores_is_malformed(fake_http) -> None:
    fake_http.queue(_completion('{"overall_score": 80, "feedback": "ok"}'))

    with pytest.raises(MalformedResponse) as exc_info:
        await _generic_adapter().assess(b"", "think about it", "en-US")

    assert "accuracy_score" in exc_info.value.reason


@pytest.mark.asyncio
async def test_generic_ai_without_json_is_malformed(fake_http) -> None:
    fake_http.queue(_completion("抱歉，我无法完成评测。"))

    with pytest.raises(MalformedResponse):
        await _generic_adapter().assess(b"", "think about it", "en-US")


@pytest.mark.asyncio
async def test_generic_ai_empty_choices_is_malformed(fake_http) -> None:
    fake_http.queue({"choices": []})

    with pytest.raises(MalformedResponse):
        await _generic_adapter().assess(b"", "think about it", "en-US")


@pytest.mark.asyncio
async def test_generic_ai_rate_limited(fake_http) -> None:
    fake_http.queue({"error": "rate limited"}, status_code=429, text="rate limited")

    with pytest.raises(ProviderUnavailable):
        await _generic_adapter().assess(b"", "think about it", "en-US")


@pytest.mark.asyncio
async def test_generic_ai_feedback_generated_when_missing(fake_http) -> None:
    payload = {key: value for key, value in _SCORES.items() if key != "feedback"}
    fake_http.queue(_completion(json.dumps(payload)))

    scores = await _generic_adapter().assess(b"", "think about it", "en-US")

    assert scores.feedback == "发音基本准确，继续练习。 需要重点练习: think"


def _openai_config(**overrides: object) -> ProviderConfig:
    values: dict[str, object] = {
        "id": "openai-1",
        "name": "OpenAI",
        "tier": "standard",
        "provider_type": "openai_compatible",
        "api_endpoint": "https://llm.example.com/v1",
        "api_key_secret_name": "OPENAI_KEY",
        "model_identifier": None,
        "config_json": {},
    }
    values.update(overrides)
    return ProviderConfig(**values)


@pytest.mark.asyncio
async def test_openai_compatible_uses_configured_endpoint(fake_http) -> None:
    fake_http.queue(_completion(json.dumps(_SCORES)))
    adapter = OpenAICompatibleAdapter(_openai_config(), MappingSecretResolver({"OPENAI_KEY": "sk-test"}))

    scores = await adapter.assess(b"", "think about it", "en-US")

    request = fake_http.requests[0]
    assert request["url"] == "https://llm.example.com/v1/chat/completions"
    assert request["json"]["model"] == "gpt-4"
    assert request["json"]["temperature"] == 0.3
    assert request["headers"]["Authorization"] == "Bearer sk-test"
    assert scores.is_simulated is True


@pytest.mark.asyncio
async def test_openai_compatible_invalid_key(fake_http) -> None:
    fake_http.queue({"error": {"message": "invalid api key"}}, status_code=401)
    adapter = OpenAICompatibleAdapter(
        _openai_config(model_identifier="gpt-4o-mini"), MappingSecretResolver({"OPENAI_KEY": "sk-bad"})
    )

    with pytest.raises(AuthenticationFailed):
        await adapter.assess(b"", "think about it", "en-US")

    assert fake_http.requests[0]["json"]["model"] == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_openai_compatible_without_endpoint(fake_http) -> None:
    adapter = OpenAICompatibleAdapter(
        _openai_config(api_endpoint=None), MappingSecretResolver({"OPENAI_KEY": "sk-test"})
    )

    with pytest.raises(Unsupported):
        await adapter.assess(b"", "think about it", "en-US")


def _asr_adapter(secrets: dict[str, str] | None = None) -> TencentASRAdapter:
    config = ProviderConfig(
        id="asr-1",
        name="Tencent ASR",
        tier="standard",
        provider_type="tencent",
        config_json={},
    )
    values = (
        {"TENCENT_SECRET_ID": "AKIDasr", "TENCENT_SECRET_KEY": "asr-secret", "LOVABLE_API_KEY": "gateway-key"}
        if secrets is None
        else secrets
    )
    return TencentASRAdapter(config, MappingSecretResolver(values))


@pytest.mark.asyncio
async def test_tencent_asr_transcribes_then_evaluates(fake_http) -> None:
    fake_http.queue({"Response": {"Result": "think about eat", "AudioDuration": 1800, "RequestId": "r1"}})
    fake_http.queue(_completion(json.dumps(_SCORES)))

    scores = await _asr_adapter().assess(b"\x1a\x45\xdf\xa3", "think about it", "en-US")

    assert scores.transcribed_text == "think about eat"
    assert scores.is_simulated is False
    assert len(scores.words) <= 3

    asr_request, eval_request = fake_http.requests
    assert asr_request["url"] == "https://asr.tencentcloudapi.com"
    assert asr_request["headers"]["X-TC-Action"] == "SentenceRecognition"
    assert asr_request["headers"]["X-TC-Region"] == "ap-shanghai"
    body = json.loads(asr_request["content"])
    assert body["EngSerViceType"] == "16k_en"
    assert body["DataLen"] == 4
    assert base64.b64decode(body["Data"]) == b"\x1a\x45\xdf\xa3"
    assert eval_request["json"]["temperature"] == 0.3
    assert "think about eat" in eval_request["json"]["messages"][1]["content"]


@pytest.mark.asyncio
async def test_tencent_asr_error_stops_before_evaluation(fake_http) -> None:
    fake_http.queue({"Response": {"Error": {"Code": "FailedOperation.ErrorRecognize", "Message": "bad audio"}}})

    with pytest.raises(ProviderUnavailable):
        await _asr_adapter().assess(b"audio", "think about it", "en-US")

    assert fake_http.calls == 1


@pytest.mark.asyncio
async def test_tencent_asr_requires_gateway_key(fake_http) -> None:
    adapter = _asr_adapter(secrets={"TENCENT_SECRET_ID": "AKIDasr", "TENCENT_SECRET_KEY": "asr-secret"})

    with pytest.raises(AuthenticationFailed):
        await adapter.assess(b"audio", "think about it", "en-US")

    assert fake_http.calls == 0


@pytest.mark.asyncio
async def test_ifly_is_unsupported(fake_http) -> None:
    config = ProviderConfig(id="ifly-1", name="iFly", tier="professional", provider_type="ifly", config_json={})
    adapter = IFlyAdapter(config, MappingSecretResolver({}))

    with pytest.raises(Unsupported):
        await adapter.assess(b"audio", "think about it", "en-US")

    assert fake_http.calls == 0


def test_create_adapter_resolves_aliases() -> None:
    resolver = MappingSecretResolver({})
    config = ProviderConfig(name="legacy", tier="standard", provider_type="Lovable", config_json={})

    assert isinstance(create_adapter(config, resolver), GenericAIAdapter)


def test_create_adapter_unknown_type() -> None:
    config = ProviderConfig(name="speechsuper", tier="professional", provider_type="speechsuper", config_json={})

    with pytest.raises(Unsupported):
        create_adapter(config, MappingSecretResolver({}))


def test_create_adapter_rejects_tier_outside_adapter() -> None:
    config = ProviderConfig(name="asr", tier="professional", provider_type="tencent_asr", config_json={})

    with pytest.raises(Unsupported) as exc_info:
        create_adapter(config, MappingSecretResolver({}))

    assert "professional" in exc_info.value.reason
