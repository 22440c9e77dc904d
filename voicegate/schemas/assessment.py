from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AssessmentCreateRequest(BaseModel):
    # 必填校验由网关完成，保证错误响应带 billed=false
    audio_base64: Optional[str] = None
    original_text: Optional[str] = None
    language: str = Field(default="en-US", max_length=20)
    model_id: Optional[str] = None


class PhonemeResult(BaseModel):
    phoneme: str
    score: int


class WordResult(BaseModel):
    word: str
    accuracy_score: int
    error_type: Optional[str] = None
    phonemes: Optional[list[PhonemeResult]] = None


class AssessmentResponse(BaseModel):
    overall_score: int
    pronunciation_score: int
    accuracy_score: int
    fluency_score: int
    completeness_score: int
    feedback: str
    words_result: list[WordResult] = Field(default_factory=list)
    transcribed_text: Optional[str] = None
    is_simulated: bool = False
    provider: str
    remaining_minutes: int
    minutes_used: int
    billed: bool
    billing_error: Optional[str] = None
