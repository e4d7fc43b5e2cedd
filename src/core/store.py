"""
스니펫 저장소: JSON 파일 기반 CRUD.

규칙:
- 스니펫 1개 = 파일 1개 (data/snippets/<name>.json)
- 이름별 FileLock으로 동시 수정 방지
- 원자적 쓰기: temp → rename + fsync
- 중복 name 생성 시 에러 (fail-fast)
- get_snippet()은 없으면 None → 렌더러의 lookup으로 그대로 사용

파일시스템 안정성 (best-effort):
- fsync 실패 시 경고 남기고 계속 진행
"""

import json
import logging
import os
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from src.core.ids import generate_prompt_id, generate_snippet_id
from src.domain.constants import (
    SNIPPET_NAME_MAX_LENGTH,
    STORE_LOCKS_DIR,
    STORE_PROMPTS_DIR,
    STORE_SNIPPETS_DIR,
)
from src.domain.errors import ErrorCodes, SnippetError
from src.domain.schemas import ComposedPrompt, Snippet

logger = logging.getLogger(__name__)

# 파일명으로 쓰이므로 경로/참조 문법 문자 금지
FORBIDDEN_NAME_CHARS = set('/\\:*?"<>|{} \t\r\n')


# =============================================================================
# Atomic Write
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    rename 후 디렉토리 엔트리까지 내구성을 강화하려면 필요.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """
    원자적 JSON 쓰기.

    동작:
    - 중간 상태 없음: temp → rename
    - 파일 fsync + 디렉토리 fsync (실패 시 경고)
    - 실패 시 temp 파일 삭제, 기존 파일 보존

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(f"File fsync failed for {path}: {e}.")

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


# =============================================================================
# Validation
# =============================================================================

def validate_snippet_name(name: str) -> None:
    """
    스니펫 이름 유효성 검증.

    규칙:
    - 비어있지 않음, 최대 100자
    - 금지 문자: / \\ : * ? " < > | { } 공백
    - "."으로 시작 불가

    Raises:
        SnippetError: INVALID_SNIPPET_NAME
    """
    if not name:
        raise SnippetError(
            ErrorCodes.INVALID_SNIPPET_NAME,
            "Snippet name cannot be empty",
        )

    if len(name) > SNIPPET_NAME_MAX_LENGTH:
        raise SnippetError(
            ErrorCodes.INVALID_SNIPPET_NAME,
            f"Snippet name exceeds {SNIPPET_NAME_MAX_LENGTH} characters",
            length=len(name),
        )

    found_forbidden = set(name) & FORBIDDEN_NAME_CHARS
    if found_forbidden:
        raise SnippetError(
            ErrorCodes.INVALID_SNIPPET_NAME,
            f"Snippet name contains forbidden characters: {sorted(found_forbidden)}",
            forbidden=sorted(found_forbidden),
        )

    if name.startswith("."):
        raise SnippetError(
            ErrorCodes.INVALID_SNIPPET_NAME,
            "Snippet name cannot start with '.'",
        )


def _now() -> str:
    return datetime.now(UTC).isoformat()


# =============================================================================
# Snippet Store
# =============================================================================

class SnippetStore:
    """
    스니펫 CRUD 저장소.

    구조:
    data/
    ├── snippets/<name>.json
    └── .locks/<name>.lock
    """

    # 락 timeout (초)
    LOCK_TIMEOUT = 10.0

    def __init__(self, data_root: Path):
        """
        Args:
            data_root: 데이터 루트 경로
        """
        self.data_root = data_root
        self.snippets_dir = data_root / STORE_SNIPPETS_DIR
        self._locks_dir = data_root / STORE_LOCKS_DIR

    @contextmanager
    def _snippet_lock(self, name: str) -> Generator[None, None, None]:
        """
        스니펫별 락 획득.

        Raises:
            SnippetError: SNIPPET_LOCK_TIMEOUT
        """
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"snippet.{name}.lock", timeout=self.LOCK_TIMEOUT)

        try:
            lock.acquire()
        except Timeout as e:
            raise SnippetError(
                ErrorCodes.SNIPPET_LOCK_TIMEOUT,
                f"Failed to acquire lock for snippet '{name}'",
                name=name,
                timeout=self.LOCK_TIMEOUT,
            ) from e

        try:
            yield
        finally:
            lock.release()

    def _snippet_path(self, name: str) -> Path:
        return self.snippets_dir / f"{name}.json"

    def _read(self, path: Path) -> Snippet:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Snippet.from_dict(data)
        # JSONDecodeError, UnicodeDecodeError 모두 ValueError
        except (ValueError, KeyError, TypeError) as e:
            raise SnippetError(
                ErrorCodes.SNIPPET_CORRUPT,
                f"Snippet file is corrupt: {path.name}",
                path=str(path),
            ) from e

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        name: str,
        content: str,
        description: str | None = None,
        client_id: str | None = None,
        is_general: bool | None = None,
    ) -> Snippet:
        """
        새 스니펫 저장.

        Args:
            name: 스니펫 이름 (계층형, 예: geo_asia_japan)
            content: 본문 ({{참조}} 포함 가능)
            description: 설명
            client_id: 소속 클라이언트 (없으면 공용)
            is_general: 공용 여부 (None이면 client_id 없을 때 True)

        Returns:
            저장된 Snippet

        Raises:
            SnippetError: INVALID_SNIPPET_NAME, SNIPPET_EXISTS
        """
        validate_snippet_name(name)

        with self._snippet_lock(name):
            path = self._snippet_path(name)
            if path.exists():
                raise SnippetError(
                    ErrorCodes.SNIPPET_EXISTS,
                    f"A snippet with name '{name}' already exists",
                    name=name,
                )

            now = _now()
            snippet = Snippet(
                name=name,
                content=content,
                description=description,
                id=generate_snippet_id(name),
                client_id=client_id,
                is_general=is_general if is_general is not None else client_id is None,
                created_at=now,
                updated_at=now,
            )
            atomic_write_json(path, snippet.to_dict())
            logger.info(f"Snippet created: {name}")
            return snippet

    # =========================================================================
    # Read
    # =========================================================================

    def get(self, name: str) -> Snippet:
        """
        스니펫 조회.

        Raises:
            SnippetError: SNIPPET_NOT_FOUND, SNIPPET_CORRUPT
        """
        snippet = self.get_snippet(name)
        if snippet is None:
            raise SnippetError(
                ErrorCodes.SNIPPET_NOT_FOUND,
                f"Snippet not found: {name}",
                name=name,
            )
        return snippet

    def get_snippet(self, name: str) -> Snippet | None:
        """
        렌더러용 조회: 없으면 None.

        유효하지 않은 이름도 "없음"으로 취급 (파일 경로로 쓰지 않음).
        손상된 파일은 SnippetError로 전파 → 렌더러가 조회 실패로 기록.
        """
        try:
            validate_snippet_name(name)
        except SnippetError:
            return None

        path = self._snippet_path(name)
        if not path.exists():
            return None
        return self._read(path)

    def list(self, search: str | None = None) -> list[Snippet]:
        """
        스니펫 목록 (최신 생성순).

        Args:
            search: 이름 부분 일치 검색어 (대소문자 무시)

        Returns:
            Snippet 목록
        """
        if not self.snippets_dir.exists():
            return []

        needle = search.lower() if search else None
        results = []
        for path in self.snippets_dir.glob("*.json"):
            try:
                snippet = self._read(path)
            except SnippetError as e:
                logger.warning(f"Skipping snippet file: {e}")
                continue
            if needle and needle not in snippet.name.lower():
                continue
            results.append(snippet)

        results.sort(key=lambda s: s.created_at, reverse=True)
        return results

    # =========================================================================
    # Update / Delete
    # =========================================================================

    def update(
        self,
        name: str,
        content: str | None = None,
        description: str | None = None,
    ) -> Snippet:
        """
        스니펫 내용/설명 수정 (None인 항목은 유지).

        Raises:
            SnippetError: SNIPPET_NOT_FOUND
        """
        validate_snippet_name(name)

        with self._snippet_lock(name):
            snippet = self.get(name)
            if content is not None:
                snippet.content = content
            if description is not None:
                snippet.description = description
            snippet.updated_at = _now()
            atomic_write_json(self._snippet_path(name), snippet.to_dict())
            return snippet

    def delete(self, name: str) -> None:
        """
        스니펫 삭제.

        다른 스니펫이 참조 중이어도 삭제 (렌더 시 "not found"로 보고됨).

        Raises:
            SnippetError: SNIPPET_NOT_FOUND
        """
        validate_snippet_name(name)

        with self._snippet_lock(name):
            path = self._snippet_path(name)
            if not path.exists():
                raise SnippetError(
                    ErrorCodes.SNIPPET_NOT_FOUND,
                    f"Snippet not found: {name}",
                    name=name,
                )
            path.unlink()
            logger.info(f"Snippet deleted: {name}")


# =============================================================================
# Composed Prompt Store
# =============================================================================

class ComposedPromptStore:
    """구성 프롬프트 저장소 (data/prompts/<prompt_id>.json)."""

    # 수정 가능한 필드 (id, created_at 제외)
    UPDATABLE_FIELDS = ("name", "template", "rendered_content", "used_snippets", "client_id")

    def __init__(self, data_root: Path):
        self.prompts_dir = data_root / STORE_PROMPTS_DIR

    def _prompt_path(self, prompt_id: str) -> Path:
        # 경로 구성 요소 제거 (prompts/ 밖 접근 불가)
        return self.prompts_dir / f"{Path(prompt_id).name}.json"

    def _read(self, path: Path) -> ComposedPrompt:
        try:
            return ComposedPrompt.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (ValueError, KeyError, TypeError) as e:
            raise SnippetError(
                ErrorCodes.PROMPT_CORRUPT,
                f"Prompt file is corrupt: {path.name}",
                path=str(path),
            ) from e

    def create(
        self,
        name: str,
        template: str,
        rendered_content: str | None = None,
        used_snippets: list[str] | None = None,
        client_id: str | None = None,
    ) -> ComposedPrompt:
        now = _now()
        prompt = ComposedPrompt(
            id=generate_prompt_id(),
            name=name,
            template=template,
            rendered_content=rendered_content,
            used_snippets=list(used_snippets or []),
            client_id=client_id,
            created_at=now,
            updated_at=now,
        )
        atomic_write_json(self._prompt_path(prompt.id), prompt.to_dict())
        return prompt

    def get(self, prompt_id: str) -> ComposedPrompt:
        """
        Raises:
            SnippetError: PROMPT_NOT_FOUND, PROMPT_CORRUPT
        """
        path = self._prompt_path(prompt_id)
        if not path.exists():
            raise SnippetError(
                ErrorCodes.PROMPT_NOT_FOUND,
                f"Prompt not found: {prompt_id}",
                prompt_id=prompt_id,
            )
        return self._read(path)

    def list(self) -> list[ComposedPrompt]:
        """최신 생성순 목록."""
        if not self.prompts_dir.exists():
            return []

        results = []
        for path in self.prompts_dir.glob("*.json"):
            try:
                results.append(self._read(path))
            except SnippetError as e:
                logger.warning(f"Skipping prompt file: {e}")
                continue

        results.sort(key=lambda p: p.created_at, reverse=True)
        return results

    def update(self, prompt_id: str, **changes: Any) -> ComposedPrompt:
        """
        구성 프롬프트 부분 수정.

        Args:
            prompt_id: 프롬프트 ID
            **changes: UPDATABLE_FIELDS 중 바꿀 값 (그 외 키는 무시)

        Returns:
            수정된 ComposedPrompt (updated_at 갱신)

        Raises:
            SnippetError: PROMPT_NOT_FOUND, PROMPT_CORRUPT
        """
        prompt = self.get(prompt_id)
        for key in self.UPDATABLE_FIELDS:
            if key in changes:
                value = changes[key]
                setattr(prompt, key, list(value or []) if key == "used_snippets" else value)
        prompt.updated_at = _now()
        atomic_write_json(self._prompt_path(prompt.id), prompt.to_dict())
        logger.info(f"Prompt updated: {prompt.id}")
        return prompt

    def delete(self, prompt_id: str) -> None:
        path = self._prompt_path(prompt_id)
        if not path.exists():
            raise SnippetError(
                ErrorCodes.PROMPT_NOT_FOUND,
                f"Prompt not found: {prompt_id}",
                prompt_id=prompt_id,
            )
        path.unlink()
