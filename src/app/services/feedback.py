"""
Feedback Service: 구성한 프롬프트에 대한 LLM 리뷰.

응답 형식: 좋은 점 2개 + 개선점 3개.
형식이 맞지 않으면 기본 피드백으로 대체 (note 포함).
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.app.providers import LLMProvider, build_provider
from src.app.providers.base import extract_json_object
from src.domain.constants import (
    DEFAULT_FEEDBACK_REVIEWER,
    FEEDBACK_IMPROVEMENTS_COUNT,
    FEEDBACK_LIKES_COUNT,
)

logger = logging.getLogger(__name__)

FALLBACK_NOTE = "Used fallback feedback due to parsing issues"


@dataclass
class PromptFeedback:
    likes: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"likes": self.likes, "improvements": self.improvements}


def fallback_feedback() -> PromptFeedback:
    return PromptFeedback(
        likes=[
            "The prompt shows good structure and organization",
            "It includes relevant context for AI processing",
        ],
        improvements=[
            "Could be more specific about desired output format",
            "Might benefit from additional examples or constraints",
            "Consider adding more context about the intended use case",
        ],
    )


def create_feedback_prompt(prompt_content: str) -> str:
    return (
        "You are an expert prompt engineer. Please analyze the following prompt "
        "and provide feedback.\n\n"
        f'PROMPT TO ANALYZE:\n"""\n{prompt_content}\n"""\n\n'
        "Please provide your feedback in this exact JSON format:\n"
        "{\n"
        '  "likes": [\n'
        '    "First thing you like about this prompt",\n'
        '    "Second thing you like about this prompt"\n'
        "  ],\n"
        '  "improvements": [\n'
        '    "First specific improvement suggestion",\n'
        '    "Second specific improvement suggestion",\n'
        '    "Third specific improvement suggestion"\n'
        "  ]\n"
        "}\n\n"
        "Focus on:\n"
        "- Clarity and specificity\n"
        "- Structure and organization\n"
        "- Potential for good AI responses\n"
        "- Reusability and composability\n"
        "- Missing context or instructions\n\n"
        "Provide only the JSON response, no additional text."
    )


def parse_feedback(text: str) -> PromptFeedback:
    """
    리뷰 응답 파싱.

    Raises:
        ValueError: JSON 없음, likes/improvements 형식 또는 개수 불일치
    """
    data = extract_json_object(text)
    likes = data.get("likes")
    improvements = data.get("improvements")
    if not isinstance(likes, list) or not isinstance(improvements, list):
        raise ValueError("Invalid feedback structure")
    if len(likes) != FEEDBACK_LIKES_COUNT or len(improvements) != FEEDBACK_IMPROVEMENTS_COUNT:
        raise ValueError(
            f"Feedback should have exactly {FEEDBACK_LIKES_COUNT} likes "
            f"and {FEEDBACK_IMPROVEMENTS_COUNT} improvements"
        )
    return PromptFeedback(
        likes=[str(item) for item in likes],
        improvements=[str(item) for item in improvements],
    )


class FeedbackService:
    """프롬프트 리뷰 서비스 (ai.feedback 설정 모델)."""

    def __init__(self, config: dict, provider: LLMProvider | None = None):
        ai_config = config.get("ai", {}) or {}
        self.entry: dict[str, Any] = ai_config.get("feedback") or DEFAULT_FEEDBACK_REVIEWER
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = build_provider(self.entry, max_tokens=self.entry.get("max_tokens"))
        return self._provider

    async def review(self, prompt_content: str) -> dict[str, Any]:
        """
        프롬프트 리뷰.

        Returns:
            {"feedback": {"likes": [...], "improvements": [...]}} (+ 대체 시 "note")

        Raises:
            CompletionError: provider 생성/호출 실패
        """
        result = await self.provider.complete(
            create_feedback_prompt(prompt_content),
            temperature=self.entry.get("temperature"),
        )

        try:
            feedback = parse_feedback(result.text)
        except ValueError as e:
            logger.warning(f"Failed to parse feedback response: {e}")
            return {"feedback": fallback_feedback().to_dict(), "note": FALLBACK_NOTE}

        return {"feedback": feedback.to_dict()}
