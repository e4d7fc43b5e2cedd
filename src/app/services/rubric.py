"""
Rubric Service: Word(.docx) 루브릭 → 정리된 텍스트.

python-docx로 본문 문단 + 표 셀 텍스트를 추출하고
생성 프롬프트에 넣기 좋게 공백/빈 줄을 정리.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from docx import Document

from src.domain.errors import ErrorCodes, SnippetError

logger = logging.getLogger(__name__)

HEADING_MAX_LENGTH = 100

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_UPPERCASE_HEADING = re.compile(r"^[A-Z\s]+$")
_NUMBERED_HEADING = re.compile(r"^\d+\.")
_COLON_HEADING = re.compile(r"^[A-Za-z\s]+:$")
_CRITERION = re.compile(r"^(?:[-*•]|\d+[.)])\s+")


@dataclass
class RubricSection:
    heading: str
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"heading": self.heading, "content": self.content}


@dataclass
class RubricStructure:
    """루브릭 구조 (제목, 섹션, 평가 기준)."""
    title: str | None = None
    sections: list[RubricSection] = field(default_factory=list)
    criteria: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "sections": [s.to_dict() for s in self.sections],
            "criteria": self.criteria,
        }


def extract_text_from_docx(file_bytes: bytes) -> str:
    """
    .docx 바이트에서 텍스트 추출.

    Args:
        file_bytes: 업로드된 파일 내용

    Returns:
        문단과 표 셀 텍스트를 줄 단위로 이은 원문

    Raises:
        SnippetError: RUBRIC_PARSE_FAILED
    """
    try:
        document = Document(io.BytesIO(file_bytes))
    except Exception as e:
        logger.error(f"Error extracting text from Word document: {e}")
        raise SnippetError(
            ErrorCodes.RUBRIC_PARSE_FAILED,
            "Failed to parse Word document",
        ) from e

    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                lines.append(cell.text)

    return "\n".join(lines)


def process_rubric_content(raw_text: str) -> str:
    """
    Word 서식 흔적 정리.

    - \\r\\n, \\r → \\n
    - 3개 이상 연속 개행 축소
    - 각 줄 앞뒤 공백 제거, 빈 줄 제거
    """
    cleaned = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned).strip()

    lines = (line.strip() for line in cleaned.split("\n"))
    return "\n".join(line for line in lines if line)


def _is_heading(line: str) -> bool:
    if len(line) >= HEADING_MAX_LENGTH:
        return False
    return bool(
        _UPPERCASE_HEADING.match(line)
        or _NUMBERED_HEADING.match(line)
        or _COLON_HEADING.match(line)
    )


def parse_rubric_structure(content: str) -> RubricStructure:
    """
    정리된 루브릭 텍스트에서 구조 추출.

    첫 줄은 제목, 대문자/번호/콜론으로 끝나는 짧은 줄은 섹션 제목,
    글머리표/번호 줄은 평가 기준으로 본다.
    """
    lines = content.split("\n") if content else []
    structure = RubricStructure()
    if not lines:
        return structure

    structure.title = lines[0]
    current: RubricSection | None = None

    for line in lines[1:]:
        if _is_heading(line):
            if current is not None:
                structure.sections.append(current)
            current = RubricSection(heading=line)
        elif current is not None:
            current.content = f"{current.content}\n{line}" if current.content else line

        if _CRITERION.match(line):
            structure.criteria.append(_CRITERION.sub("", line, count=1))

    if current is not None:
        structure.sections.append(current)

    return structure
