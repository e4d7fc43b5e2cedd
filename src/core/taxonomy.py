"""
Taxonomy: 마스터 분류 문서 파싱 + 커버리지 분석.

분류 문서 형식 (트리 문자 기반):

    geo_
    ├── geo_asia_
    │   ├── geo_asia_japan
    │   └── geo_asia_china
    └── geo_europe_uk

규칙:
- 들여쓰기 없이 "_"로 끝나는 줄 = 최상위 카테고리
- ├── / └── 가 있는 줄 = 항목 (앞쪽 트리 문자/공백 제거)
- 제목 줄, "1." 같은 번호 줄은 무시
- "_"로 끝나고 자식이 있는 항목은 그룹 → 스니펫 후보(leaf)에서 제외
- 이름 비교는 대소문자 무시
"""

import logging
import math
import random
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.domain.errors import ErrorCodes, SnippetError

logger = logging.getLogger(__name__)

TAXONOMY_TITLE_MARKER = "Master Taxonomy"
TREE_BRANCHES = ("├──", "└──")
TREE_PREFIX_PATTERN = re.compile(r"^[├└─│\s]+")
NUMBERED_LINE_PATTERN = re.compile(r"^\d+\.")

# 트리 접두어 4칸 = 1단계 ("├── " = 1, "│   ├── " = 2)
INDENT_WIDTH = 4

# 우선순위 동률 분산용 무작위 폭
SUGGESTION_JITTER = 0.1


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class TaxonomyItem:
    """분류 항목."""
    name: str
    level: int
    parent: str | None = None
    children: list[str] = field(default_factory=list)


@dataclass
class TaxonomyStructure:
    """
    파싱된 분류 구조.

    categories: 이름 → TaxonomyItem
    all_items: 문서 등장 순서
    """
    categories: dict[str, TaxonomyItem] = field(default_factory=dict)
    all_items: list[str] = field(default_factory=list)

    def is_leaf(self, name: str) -> bool:
        """스니펫으로 만들 수 있는 항목인지 (그룹 제외)."""
        item = self.categories.get(name)
        return not name.endswith("_") or item is None or not item.children

    def main_categories(self) -> list[str]:
        """최상위 카테고리 (문서 순서)."""
        return [
            name for name in self.all_items
            if name.endswith("_") and self.categories[name].level == 0
            and self.categories[name].parent is None
        ]


@dataclass
class CategoryGap:
    """카테고리별 커버리지."""
    total: int
    covered: int
    missing: list[str] = field(default_factory=list)

    @property
    def coverage(self) -> float:
        # 후보가 없는 카테고리는 채워진 것으로 취급
        return self.covered / self.total if self.total else 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "missing": self.missing,
            "coverage": round(self.coverage * 100),
        }


@dataclass
class CoverageReport:
    """전체 커버리지 분석 결과."""
    category_gaps: dict[str, CategoryGap] = field(default_factory=dict)
    overall_coverage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_gaps": {k: v.to_dict() for k, v in self.category_gaps.items()},
            "overall_coverage": round(self.overall_coverage * 100),
        }


# =============================================================================
# Parsing
# =============================================================================

def _split_branch(line: str) -> tuple[int, str]:
    """트리 줄 → (단계, 항목 이름)."""
    prefix = TREE_PREFIX_PATTERN.match(line)
    width = len(prefix.group(0)) if prefix else 0
    return max(1, width // INDENT_WIDTH), line[width:].strip()


def _find_parent(taxonomy: TaxonomyStructure, level: int, default: str) -> str:
    """가장 최근에 추가된 (level - 1) 항목."""
    for name in reversed(taxonomy.all_items):
        if taxonomy.categories[name].level == level - 1:
            return name
    return default


def parse_taxonomy(content: str) -> TaxonomyStructure:
    """
    분류 문서 파싱.

    Args:
        content: 분류 문서 본문

    Returns:
        TaxonomyStructure (중복 항목은 첫 등장만 유지)
    """
    taxonomy = TaxonomyStructure()
    current_section = ""

    for line in content.splitlines():
        trimmed = line.strip()
        if (
            not trimmed
            or TAXONOMY_TITLE_MARKER in trimmed
            or NUMBERED_LINE_PATTERN.match(trimmed)
        ):
            continue

        # 최상위 카테고리 (예: "core_", "geo_")
        if not line[0].isspace() and trimmed.endswith("_"):
            current_section = trimmed
            if trimmed not in taxonomy.categories:
                taxonomy.categories[trimmed] = TaxonomyItem(name=trimmed, level=0)
                taxonomy.all_items.append(trimmed)
            continue

        if not any(branch in trimmed for branch in TREE_BRANCHES):
            continue

        level, name = _split_branch(line)
        if not name or "Categories" in name:
            continue

        parent = current_section
        if level > 1:
            parent = _find_parent(taxonomy, level, current_section)

        if name not in taxonomy.categories:
            taxonomy.categories[name] = TaxonomyItem(
                name=name,
                level=level,
                parent=parent if parent and parent != name else None,
            )
            taxonomy.all_items.append(name)

        if parent and parent != name and parent in taxonomy.categories:
            siblings = taxonomy.categories[parent].children
            if name not in siblings:
                siblings.append(name)

    return taxonomy


def load_taxonomy(path: Path) -> TaxonomyStructure:
    """
    분류 문서 파일 로드.

    Raises:
        SnippetError: TAXONOMY_NOT_FOUND
    """
    if not path.exists():
        raise SnippetError(
            ErrorCodes.TAXONOMY_NOT_FOUND,
            f"Taxonomy file not found: {path.name}",
            path=str(path),
        )
    taxonomy = parse_taxonomy(path.read_text(encoding="utf-8"))
    logger.debug(f"Taxonomy loaded: {len(taxonomy.all_items)} items from {path.name}")
    return taxonomy


# =============================================================================
# Coverage
# =============================================================================

def get_missing_taxonomy_items(
    taxonomy: TaxonomyStructure,
    existing_snippets: list[str],
) -> list[str]:
    """아직 스니펫이 없는 leaf 항목 (문서 순서)."""
    existing = {name.lower() for name in existing_snippets}
    return [
        item for item in taxonomy.all_items
        if taxonomy.is_leaf(item) and item.lower() not in existing
    ]


def analyze_coverage_gaps(
    taxonomy: TaxonomyStructure,
    existing_snippets: list[str],
) -> CoverageReport:
    """
    최상위 카테고리별 커버리지.

    카테고리 소속 = 카테고리 이름으로 시작하는 leaf 항목.

    Returns:
        CoverageReport (leaf 항목이 없으면 overall_coverage 0)
    """
    existing = {name.lower() for name in existing_snippets}
    report = CoverageReport()
    total_items = 0
    total_covered = 0

    for category in taxonomy.main_categories():
        items = [
            item for item in taxonomy.all_items
            if item != category and item.startswith(category) and taxonomy.is_leaf(item)
        ]
        missing = [item for item in items if item.lower() not in existing]
        covered = len(items) - len(missing)

        report.category_gaps[category] = CategoryGap(
            total=len(items), covered=covered, missing=missing
        )
        total_items += len(items)
        total_covered += covered

    report.overall_coverage = total_covered / total_items if total_items else 0.0
    return report


def get_balanced_suggestions(
    taxonomy: TaxonomyStructure,
    existing_snippets: list[str],
    limit: int = 5,
    rng: random.Random | None = None,
    jitter: float = SUGGESTION_JITTER,
) -> list[str]:
    """
    커버리지가 낮은 카테고리 우선으로 다음 스니펫 후보 선정.

    카테고리마다 최대 ceil(limit / 카테고리 수)개를 뽑고
    우선순위(1 - 커버리지 + 무작위 jitter) 내림차순으로 limit개.

    Args:
        taxonomy: 분류 구조
        existing_snippets: 기존 스니펫 이름
        limit: 최대 개수
        rng: 난수 생성기 (재현 필요 시 seed 지정)
        jitter: 무작위 폭 (0이면 결정적)

    Returns:
        후보 이름 목록
    """
    report = analyze_coverage_gaps(taxonomy, existing_snippets)
    if not report.category_gaps or limit <= 0:
        return []

    rng = rng or random.Random()
    per_category = max(1, math.ceil(limit / len(report.category_gaps)))
    ranked = sorted(report.category_gaps.values(), key=lambda gap: gap.coverage)

    candidates: list[tuple[float, str]] = []
    for gap in ranked:
        base_priority = 1 - gap.coverage
        for item in gap.missing[:per_category]:
            candidates.append((base_priority + rng.random() * jitter, item))

    candidates.sort(key=lambda c: c[0], reverse=True)
    return [item for _, item in candidates[:limit]]
