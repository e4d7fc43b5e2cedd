"""
FastAPI Routes.

JSON API 라우트 (스니펫, 렌더, 유사도, 구성 프롬프트, 생성, 추천, 피드백)
"""

from . import feedback, generate, prompts, recommendations, render, similarity, snippets

__all__ = [
    "feedback",
    "generate",
    "prompts",
    "recommendations",
    "render",
    "similarity",
    "snippets",
]
