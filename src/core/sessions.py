"""
Generation session log: 다중 LLM 생성 과정 기록.

규칙:
- 생성 요청마다 세션 1개 (in_progress로 시작)
- 성공/실패 모두 완료 처리 후 저장
- 모델별 응답 원문과 최종 결합 결과를 함께 보관
"""

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.ids import generate_session_id
from src.core.store import atomic_write_json
from src.domain.constants import SESSION_ID_PREFIX, STORE_SESSIONS_DIR
from src.domain.errors import ErrorCodes, SnippetError
from src.domain.schemas import GenerationSession, GenerationStatus

logger = logging.getLogger(__name__)


def create_generation_session(
    snippet_name: str,
    user_context: str,
    similar_snippets: list[str] | None = None,
    client_id: str | None = None,
) -> GenerationSession:
    """
    새 GenerationSession 생성.

    Args:
        snippet_name: 생성할 스니펫 이름
        user_context: 사용자 요구사항
        similar_snippets: 참고용으로 전달한 스니펫 이름들
        client_id: 클라이언트 ID

    Returns:
        in_progress 상태의 GenerationSession
    """
    return GenerationSession(
        session_id=generate_session_id(),
        snippet_name=snippet_name,
        user_context=user_context,
        started_at=datetime.now(UTC).isoformat(),
        similar_snippets=list(similar_snippets or []),
        client_id=client_id,
    )


def complete_generation_session(
    session: GenerationSession,
    success: bool,
    llm_responses: dict[str, str] | None = None,
    final_combined: str | None = None,
    error_message: str | None = None,
) -> None:
    """
    GenerationSession 완료 처리.

    Args:
        session: GenerationSession 인스턴스
        success: 성공 여부
        llm_responses: 모델 이름 → 응답
        final_combined: 결합된 최종 내용
        error_message: 실패 사유 (실패 시)
    """
    session.finished_at = datetime.now(UTC).isoformat()
    session.status = GenerationStatus.COMPLETED if success else GenerationStatus.FAILED
    if llm_responses is not None:
        session.llm_responses = dict(llm_responses)
    session.final_combined = final_combined

    if not success:
        session.error_message = error_message


def save_generation_session(session: GenerationSession, data_root: Path) -> Path:
    """
    GenerationSession을 파일로 저장.

    Returns:
        저장된 파일 경로
    """
    sessions_dir = data_root / STORE_SESSIONS_DIR
    path = sessions_dir / f"{session.session_id}.json"
    atomic_write_json(path, session.to_dict())
    return path


def _read_session(path: Path) -> GenerationSession:
    try:
        data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        return GenerationSession.from_dict(data)
    except (ValueError, KeyError, TypeError) as e:
        raise SnippetError(
            ErrorCodes.SESSION_CORRUPT,
            f"Generation session file is corrupt: {path.name}",
            path=str(path),
        ) from e


def load_generation_session(session_id: str, data_root: Path) -> GenerationSession:
    """
    GenerationSession 로드.

    Raises:
        SnippetError: SESSION_NOT_FOUND, SESSION_CORRUPT
    """
    path = data_root / STORE_SESSIONS_DIR / f"{Path(session_id).name}.json"
    if not path.exists():
        raise SnippetError(
            ErrorCodes.SESSION_NOT_FOUND,
            f"Generation session not found: {session_id}",
            session_id=session_id,
        )
    return _read_session(path)


def list_generation_sessions(
    data_root: Path,
    snippet_name: str | None = None,
) -> list[GenerationSession]:
    """
    세션 목록 (최근 시작순). 손상된 파일은 경고 후 건너뜀.

    Args:
        data_root: 데이터 루트
        snippet_name: 지정 시 해당 스니펫의 세션만
    """
    sessions_dir = data_root / STORE_SESSIONS_DIR
    if not sessions_dir.exists():
        return []

    sessions = []
    for path in sessions_dir.glob(f"{SESSION_ID_PREFIX}*.json"):
        try:
            session = _read_session(path)
        except SnippetError as e:
            logger.warning(f"Skipping session file: {e}")
            continue
        if snippet_name and session.snippet_name != snippet_name:
            continue
        sessions.append(session)

    sessions.sort(key=lambda s: s.started_at, reverse=True)
    return sessions
