"""
App layer: API 서버 (FastAPI).

역할:
- 스니펫/구성 프롬프트 CRUD, 렌더, 유사 스니펫 추천
- 다중 LLM 스니펫 생성 (providers + services)
- 렌더/유사도 알고리즘은 core에 위임
"""
