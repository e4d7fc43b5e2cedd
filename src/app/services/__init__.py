"""
Application Services.

역할:
- generate: 다중 LLM 스니펫 생성 + 결합 + 세션 기록
- rubric: Word 루브릭 텍스트 추출/정리
- recommend: 분류 커버리지 기반 다음 스니펫 추천
- feedback: 프롬프트 리뷰 (좋은 점 / 개선점)
"""

from .feedback import FeedbackService, PromptFeedback
from .generate import (
    GenerationOutcome,
    GenerationService,
    create_combiner_prompt,
    create_generation_prompt,
)
from .recommend import Recommendation, RecommendationService
from .rubric import (
    RubricStructure,
    extract_text_from_docx,
    parse_rubric_structure,
    process_rubric_content,
)

__all__ = [
    "FeedbackService",
    "PromptFeedback",
    "RecommendationService",
    "Recommendation",
    "GenerationService",
    "GenerationOutcome",
    "create_generation_prompt",
    "create_combiner_prompt",
    "RubricStructure",
    "extract_text_from_docx",
    "process_rubric_content",
    "parse_rubric_structure",
]
