"""
Feedback Routes: 프롬프트 리뷰.

- POST /api/feedback → {"feedback": {"likes": [2개], "improvements": [3개]}}
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.app.dependencies import completion_http_exception, get_feedback_service
from src.app.providers import CompletionError
from src.app.services.feedback import FeedbackService

logger = logging.getLogger(__name__)

api_router = APIRouter()


class FeedbackBody(BaseModel):
    prompt_content: str = ""


@api_router.post("")
async def prompt_feedback(
    body: FeedbackBody,
    service: FeedbackService = Depends(get_feedback_service),
) -> dict[str, Any]:
    """프롬프트 리뷰 (형식 불일치 시 기본 피드백 + note)."""
    if not body.prompt_content:
        raise HTTPException(
            status_code=400,
            detail={"code": "MISSING_FIELDS", "message": "Prompt content is required"},
        )

    try:
        return await service.review(body.prompt_content)
    except CompletionError as e:
        logger.error(f"Error getting feedback: {e}")
        raise completion_http_exception(e, "Failed to get feedback") from e
