"""
Recommendation Service: 다음에 만들 스니펫 추천.

흐름:
1. 분류 문서 대비 커버리지 분석 (빠진 항목, 카테고리별 비율, 균형 후보)
2. 추천 모델에 분석 결과 전달 → JSON 응답 파싱
3. 이미 있는 스니펫을 추천하면 균형 후보로 교체
4. 응답 파싱 실패 → 커버리지 기반 후보로 대체 (note 포함)

추천 모델 호출 자체가 실패하면 CompletionError 전파.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.app.providers import LLMProvider, build_provider
from src.app.providers.base import extract_json_object
from src.core.taxonomy import (
    TaxonomyStructure,
    analyze_coverage_gaps,
    get_balanced_suggestions,
    get_missing_taxonomy_items,
)
from src.domain.constants import (
    DEFAULT_BALANCED_LIMIT,
    DEFAULT_RECOMMENDER,
    FALLBACK_RECOMMENDATION,
)

logger = logging.getLogger(__name__)

# 프롬프트에 넣는 목록 길이
EXISTING_SAMPLE_SIZE = 20
MISSING_SAMPLE_SIZE = 10
STRUCTURE_SAMPLE_SIZE = 15
SUGGESTION_SAMPLE_SIZE = 5

DUPLICATE_REASONING = (
    "Fallback recommendation based on coverage analysis due to duplicate detection."
)
FALLBACK_REASONING = (
    "Intelligent fallback based on coverage gap analysis to ensure balanced library development."
)
FALLBACK_NOTE = "Used fallback recommendation due to AI parsing issues"


@dataclass
class Recommendation:
    """추천 결과."""
    recommended: str
    reasoning: str
    alternatives: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommended": self.recommended,
            "reasoning": self.reasoning,
            "alternatives": self.alternatives,
        }


@dataclass
class RecommendationContext:
    """추천 근거로 쓴 커버리지 요약."""
    current_snippet: str
    existing: list[str]
    missing: list[str]
    balanced: list[str]
    category_stats: dict[str, tuple[int, int]]
    overall_coverage: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_existing": len(self.existing),
            "total_missing": len(self.missing),
            "overall_coverage": round(self.overall_coverage * 100),
            "balanced_suggestions": self.balanced[:SUGGESTION_SAMPLE_SIZE],
        }

    def fallback_pick(self) -> str:
        if self.balanced:
            return self.balanced[0]
        if self.missing:
            return self.missing[0]
        return FALLBACK_RECOMMENDATION


def build_recommendation_context(
    current_snippet: str,
    taxonomy: TaxonomyStructure,
    existing: list[str],
    balanced_limit: int = DEFAULT_BALANCED_LIMIT,
) -> RecommendationContext:
    """분류 문서와 기존 스니펫으로 추천 근거 계산."""
    report = analyze_coverage_gaps(taxonomy, existing)
    return RecommendationContext(
        current_snippet=current_snippet,
        existing=list(existing),
        missing=get_missing_taxonomy_items(taxonomy, existing),
        balanced=get_balanced_suggestions(taxonomy, existing, limit=balanced_limit),
        category_stats={
            category: (gap.covered, gap.total)
            for category, gap in report.category_gaps.items()
        },
        overall_coverage=report.overall_coverage,
    )


def create_recommendation_prompt(context: RecommendationContext, taxonomy: TaxonomyStructure) -> str:
    """추천 모델 프롬프트."""
    existing = context.existing
    existing_sample = ", ".join(existing[:EXISTING_SAMPLE_SIZE])
    if len(existing) > EXISTING_SAMPLE_SIZE:
        existing_sample += "..."

    coverage_lines = "\n".join(
        f"{category}: {covered}/{total} ({round(covered / total * 100) if total else 0}%)"
        for category, (covered, total) in context.category_stats.items()
    )

    return (
        "You are an expert prompt engineer helping to systematically build a "
        "comprehensive prompt snippet library.\n\n"
        f"CURRENT SNIPPET: {context.current_snippet}\n\n"
        f"EXISTING SNIPPETS ({len(existing)} total):\n{existing_sample}\n\n"
        f"COVERAGE ANALYSIS:\n{coverage_lines}\n\n"
        "BALANCED SUGGESTIONS FOR BETTER COVERAGE:\n"
        f"{', '.join(context.balanced[:SUGGESTION_SAMPLE_SIZE])}\n\n"
        "MISSING TAXONOMY ITEMS (sample):\n"
        f"{', '.join(context.missing[:MISSING_SAMPLE_SIZE])}\n\n"
        "TAXONOMY STRUCTURE (sample):\n"
        f"{', '.join(list(taxonomy.categories)[:STRUCTURE_SAMPLE_SIZE])}\n\n"
        "Based on the current snippet that was just created and the coverage analysis above, "
        "recommend the SINGLE BEST next snippet to create that would:\n\n"
        "1. Provide maximum strategic value for library completeness\n"
        "2. Balance coverage across different categories (avoid over-concentration in one area)\n"
        "3. Be complementary to the recently created snippet\n"
        "4. Fill important gaps in the taxonomy\n\n"
        "Respond in this exact JSON format:\n"
        "{\n"
        '  "recommended": "exact_snippet_name_from_taxonomy",\n'
        '  "reasoning": "2-3 sentence explanation of why this is the optimal next choice",\n'
        '  "alternatives": ["alternative1", "alternative2", "alternative3"]\n'
        "}\n\n"
        "Guidelines:\n"
        "- Choose from the missing taxonomy items provided\n"
        "- Prioritize categories with lower coverage percentages\n"
        "- Consider logical progression (e.g., if just did geo_asia_japan, might suggest "
        "geo_asia_china OR diversify to geo_europe_uk)\n"
        "- Avoid recommending items that already exist\n"
        "- Alternatives should be 3 other good options from different categories\n\n"
        "Provide only the JSON response, no additional text."
    )


def parse_recommendation(text: str) -> Recommendation:
    """
    추천 모델 응답 파싱.

    Raises:
        ValueError: JSON 없음, 필수 필드 누락
    """
    data = extract_json_object(text)
    recommended = data.get("recommended")
    reasoning = data.get("reasoning")
    alternatives = data.get("alternatives")
    if not recommended or not reasoning or not isinstance(alternatives, list):
        raise ValueError("Invalid recommendation structure")
    return Recommendation(
        recommended=str(recommended),
        reasoning=str(reasoning),
        alternatives=[str(a) for a in alternatives],
    )


class RecommendationService:
    """
    다음 스니펫 추천 서비스.

    Provider는 첫 호출 시 config(ai.recommender)로 생성.
    """

    def __init__(self, config: dict, provider: LLMProvider | None = None):
        self.config = config
        ai_config = config.get("ai", {}) or {}
        self.entry: dict[str, Any] = ai_config.get("recommender") or DEFAULT_RECOMMENDER
        self.balanced_limit = (config.get("recommendations", {}) or {}).get(
            "balanced_limit", DEFAULT_BALANCED_LIMIT
        )
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        """
        Raises:
            CompletionError: 알 수 없는 provider, API 키 누락
        """
        if self._provider is None:
            self._provider = build_provider(self.entry, max_tokens=self.entry.get("max_tokens"))
        return self._provider

    async def recommend(
        self,
        current_snippet: str,
        taxonomy: TaxonomyStructure,
        existing: list[str],
    ) -> dict[str, Any]:
        """
        다음 스니펫 추천.

        Args:
            current_snippet: 방금 만든 스니펫 이름
            taxonomy: 분류 구조
            existing: 기존 스니펫 이름

        Returns:
            {"recommendation": {...}, "context": {...}} (+ 대체 시 "note")

        Raises:
            CompletionError: 추천 모델 호출 실패
        """
        context = build_recommendation_context(
            current_snippet, taxonomy, existing, balanced_limit=self.balanced_limit
        )
        prompt = create_recommendation_prompt(context, taxonomy)
        result = await self.provider.complete(prompt, temperature=self.entry.get("temperature"))

        try:
            recommendation = parse_recommendation(result.text)
        except ValueError as e:
            logger.warning(f"Failed to parse AI recommendation: {e}")
            fallback = Recommendation(
                recommended=context.fallback_pick(),
                reasoning=FALLBACK_REASONING,
                alternatives=context.balanced[1:4],
            )
            return {
                "recommendation": fallback.to_dict(),
                "context": context.to_dict(),
                "note": FALLBACK_NOTE,
            }

        existing_lower = {name.lower() for name in existing}
        if recommendation.recommended.lower() in existing_lower:
            logger.info(f"Recommended snippet already exists: {recommendation.recommended}")
            recommendation.recommended = context.fallback_pick()
            recommendation.reasoning = DUPLICATE_REASONING

        return {"recommendation": recommendation.to_dict(), "context": context.to_dict()}
