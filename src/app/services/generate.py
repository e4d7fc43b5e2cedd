"""
Generation Service: 다중 LLM 스니펫 생성.

흐름:
1. 생성 프롬프트 구성 (이름, 요구사항, 루브릭, 유사 스니펫)
2. generator 모델 순차 호출 (실패한 모델은 에러 문구로 기록 후 계속)
3. combiner 모델로 결합 (실패 시 첫 성공 응답 → 없으면 실패 문구)
4. GenerationSession 기록
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.app.providers import CompletionError, LLMProvider, build_provider
from src.core.sessions import (
    complete_generation_session,
    create_generation_session,
    save_generation_session,
)
from src.domain.constants import (
    DEFAULT_COMBINER,
    DEFAULT_GENERATORS,
    GENERATION_ERROR_PREFIX,
    GENERATION_FAILED_CONTENT,
)
from src.domain.schemas import GenerationRequest, GenerationSession

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]

DEFAULT_GENERATION_TEMPERATURE = 0.7
DEFAULT_COMBINER_TEMPERATURE = 0.5
DEFAULT_MAX_TOKENS = 2000


@dataclass
class GenerationOutcome:
    """생성 결과: 모델별 응답 + 최종 결합본."""
    responses: dict[str, str] = field(default_factory=dict)
    final_content: str = GENERATION_FAILED_CONTENT
    failed_models: list[str] = field(default_factory=list)
    combined: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "responses": self.responses,
            "final_content": self.final_content,
            "failed_models": self.failed_models,
            "combined": self.combined,
        }


# =============================================================================
# Prompt Builders
# =============================================================================

def create_generation_prompt(request: GenerationRequest) -> str:
    """새 스니펫 생성용 프롬프트."""
    rubric = request.rubric_content
    prompt = (
        f'You are creating a prompt snippet called "{request.snippet_name}".\n\n'
        f"User Context/Requirements:\n{request.context}\n\n"
    )

    if rubric:
        prompt += f"Evaluation Rubric/Guidelines:\n{rubric}\n\n"

    if request.similar_snippets:
        prompt += "Here are some similar snippets for reference:\n\n"
        for snippet in request.similar_snippets:
            prompt += f"Snippet: {snippet.name}\n"
            if snippet.description:
                prompt += f"Description: {snippet.description}\n"
            prompt += f"Content:\n{snippet.content}\n\n---\n\n"

    basis = "context, evaluation rubric," if rubric else "context"
    prompt += (
        f"Based on the {basis} and similar snippets (if provided), "
        f'create a high-quality prompt snippet for "{request.snippet_name}".\n\n'
        "The snippet should:\n"
        "1. Be clear, specific, and reusable\n"
        "2. Follow a similar structure to the reference snippets if applicable\n"
        "3. Be self-contained but work well when composed with other snippets\n"
        "4. Avoid redundancy with existing snippets\n"
    )
    if rubric:
        prompt += (
            "5. Align with the evaluation criteria and guidelines provided in the rubric\n"
            "6. Address all key points and requirements mentioned in the rubric\n"
        )
    prompt += "\nProvide only the snippet content, without any additional explanation."
    return prompt


def create_combiner_prompt(
    snippet_name: str,
    context: str,
    responses: dict[str, str],
    rubric_content: str | None = None,
) -> str:
    """모델별 응답을 하나로 결합하는 프롬프트."""
    prompt = (
        "You are combining multiple AI-generated versions of a prompt snippet "
        f'called "{snippet_name}".\n\n'
        f"Original Context: {context}\n\n"
    )

    if rubric_content:
        prompt += f"Evaluation Rubric/Guidelines:\n{rubric_content}\n\n"

    prompt += "Here are the different versions:\n\n"
    for model_name, content in responses.items():
        prompt += f"=== Version from {model_name} ===\n{content}\n\n"

    prompt += (
        "Please analyze these versions and create a final, optimized version that:\n"
        "1. Combines the best elements from each version\n"
        "2. Maintains consistency and clarity\n"
        "3. Removes any redundancy\n"
        "4. Ensures the snippet is self-contained and reusable\n"
    )
    if rubric_content:
        prompt += (
            "5. Strictly adheres to all evaluation criteria and guidelines in the rubric\n"
            "6. Prioritizes rubric requirements when there are conflicts between versions\n"
        )
    prompt += "\nProvide only the final snippet content, without any additional explanation."
    return prompt


# =============================================================================
# Service
# =============================================================================

class GenerationService:
    """
    다중 LLM 생성 서비스.

    Provider 생성 실패(API 키 누락 등)는 요청 시점에 해당 모델의 실패로 처리.
    """

    def __init__(
        self,
        config: dict,
        data_root: Path | None = None,
        generators: list[tuple[str, LLMProvider | None]] | None = None,
        combiner: LLMProvider | None = None,
    ):
        """
        Args:
            config: 설정 (ai.generators, ai.combiner 포함)
            data_root: 세션 저장 루트 (None이면 세션 저장 안 함)
            generators: (표시 이름, Provider) 목록. None이면 config 기반 생성
            combiner: 결합 Provider. generators가 None이면 config 기반 생성
        """
        self.config = config
        self.data_root = data_root

        ai_config = config.get("ai", {}) or {}
        self.temperature = ai_config.get("temperature", DEFAULT_GENERATION_TEMPERATURE)
        self.max_tokens = ai_config.get("max_tokens", DEFAULT_MAX_TOKENS)
        combiner_config = ai_config.get("combiner") or DEFAULT_COMBINER
        self.combiner_temperature = combiner_config.get(
            "temperature", DEFAULT_COMBINER_TEMPERATURE
        )

        if generators is not None:
            self.generators = generators
            self.combiner = combiner
        else:
            generator_configs = ai_config.get("generators") or DEFAULT_GENERATORS
            self.generators = [
                (entry.get("name") or entry.get("model", "unknown"), self._try_build(entry))
                for entry in generator_configs
            ]
            self.combiner = self._try_build(combiner_config)

    def _try_build(self, entry: dict[str, Any]) -> LLMProvider | None:
        try:
            return build_provider(entry, max_tokens=self.max_tokens)
        except CompletionError as e:
            logger.warning(f"Provider unavailable ({entry.get('provider')}): {e}")
            return None

    async def generate(
        self,
        request: GenerationRequest,
        on_progress: ProgressCallback | None = None,
    ) -> GenerationOutcome:
        """
        생성 → 결합.

        Args:
            request: GenerationRequest
            on_progress: (단계 설명, 진행률 %) 콜백

        Returns:
            GenerationOutcome (예외를 던지지 않음)
        """
        outcome = GenerationOutcome()
        prompt = create_generation_prompt(request)
        steps = len(self.generators) + 1

        # 1. generator 순차 호출
        for index, (name, provider) in enumerate(self.generators):
            progress = (index + 1) / steps * 100
            if on_progress:
                on_progress(f"Generating with {name}...", progress * 0.75)

            try:
                if provider is None:
                    raise CompletionError("PROVIDER_UNAVAILABLE", f"{name} is not configured")
                result = await provider.complete(prompt, temperature=self.temperature)
                outcome.responses[name] = result.text
            except Exception as e:
                logger.error(f"Error with {name}: {e}")
                outcome.responses[name] = f"{GENERATION_ERROR_PREFIX} {name}"
                outcome.failed_models.append(name)

        # 2. combiner
        if on_progress:
            on_progress("Combining responses...", 90)

        combiner_prompt = create_combiner_prompt(
            request.snippet_name,
            request.context,
            outcome.responses,
            request.rubric_content,
        )

        try:
            if self.combiner is None:
                raise CompletionError("PROVIDER_UNAVAILABLE", "Combiner is not configured")
            combined = await self.combiner.complete(
                combiner_prompt, temperature=self.combiner_temperature
            )
            outcome.final_content = combined.text
            outcome.combined = True
        except Exception as e:
            logger.error(f"Error combining responses: {e}", exc_info=True)
            outcome.final_content = self._first_successful(outcome)

        if on_progress:
            on_progress("Generation complete!", 100)

        return outcome

    @staticmethod
    def _first_successful(outcome: GenerationOutcome) -> str:
        for name, text in outcome.responses.items():
            if name not in outcome.failed_models:
                return text
        return GENERATION_FAILED_CONTENT

    async def run(
        self,
        request: GenerationRequest,
        client_id: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> tuple[GenerationSession, GenerationOutcome]:
        """
        세션 기록을 포함한 생성 실행.

        모든 generator가 실패하고 결합도 실패하면 세션은 failed로 기록.
        """
        session = create_generation_session(
            snippet_name=request.snippet_name,
            user_context=request.context,
            similar_snippets=[s.name for s in request.similar_snippets],
            client_id=client_id,
        )
        logger.info(f"Generation started: {session.session_id} ({request.snippet_name})")

        outcome = await self.generate(request, on_progress=on_progress)
        success = outcome.combined or len(outcome.failed_models) < len(outcome.responses)

        complete_generation_session(
            session,
            success=success,
            llm_responses=outcome.responses,
            final_combined=outcome.final_content,
            error_message=None if success else GENERATION_FAILED_CONTENT,
        )

        if self.data_root is not None:
            save_generation_session(session, self.data_root)

        logger.info(f"Generation finished: {session.session_id} status={session.status.value}")
        return session, outcome
