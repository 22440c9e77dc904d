from __future__ import annotations

_SCORE_FIELDS = """请返回一个JSON对象，包含以下字段：
- overall_score: 总分 0-100
- accuracy_score: 发音准确度 0-100
- fluency_score: 流利度 0-100
- completeness_score: 完整度 0-100
- feedback: 中文反馈建议
- word_scores: 单词评分数组 [{word, score, error_type}]

只返回JSON，不要其他内容。"""

SIMULATION_SYSTEM_PROMPT = (
    "你是一位专业的英语发音评测专家。请根据用户提供的原文本，模拟进行发音评测并给出评分。\n\n"
    + _SCORE_FIELDS
)

EVALUATION_SYSTEM_PROMPT = (
    "你是一位专业的英语发音评测专家。请对比用户的朗读结果和原文，给出准确的评分。\n\n"
    "评分标准：\n"
    "- accuracy_score (准确度 0-100): 发音是否准确，单词是否读对\n"
    "- fluency_score (流利度 0-100): 语速是否自然，是否有停顿\n"
    "- completeness_score (完整度 0-100): 是否完整朗读了原文\n"
    "- overall_score (总分 0-100): 综合评分\n\n"
    + _SCORE_FIELDS
)

OPENAI_SYSTEM_PROMPT = """You are a professional English pronunciation assessment expert.
Analyze the provided audio transcription against the original text and provide scores.
Return a JSON object with:
- overall_score: 0-100
- accuracy_score: 0-100 (pronunciation accuracy)
- fluency_score: 0-100 (speech fluency and rhythm)
- completeness_score: 0-100 (how much of the text was spoken)
- feedback: Constructive feedback in Chinese
- word_scores: Array of {word, score, error_type} for each word
Return JSON only."""


def simulation_user_prompt(reference_text: str) -> str:
    return f'原文: "{reference_text}"\n\n请根据这个句子的难度和常见发音问题，生成一个模拟的发音评测结果。'


def evaluation_user_prompt(reference_text: str, transcribed_text: str) -> str:
    return (
        f'原文: "{reference_text}"\n\n'
        f'用户朗读识别结果: "{transcribed_text}"\n\n'
        "请根据对比结果给出发音评测分数。"
    )


def openai_user_prompt(reference_text: str) -> str:
    return f'Original text: "{reference_text}"\n\nPlease provide pronunciation assessment.'
