"""Domain layer: errors and schemas."""

from .errors import ErrorCodes, SnippetError
from .schemas import (
    ComposedPrompt,
    DependencyResult,
    GenerationRequest,
    GenerationSession,
    GenerationStatus,
    RenderResult,
    SimilarityScore,
    Snippet,
    ValidationResult,
)

__all__ = [
    "SnippetError",
    "ErrorCodes",
    "Snippet",
    "ValidationResult",
    "RenderResult",
    "DependencyResult",
    "SimilarityScore",
    "ComposedPrompt",
    "GenerationRequest",
    "GenerationSession",
    "GenerationStatus",
]
