"""
test_api_recommendations.py - Recommendations API E2E 테스트

엔드포인트:
- POST /api/recommendations
- GET /api/recommendations/coverage

분류 문서는 taxonomy_file fixture, 추천 모델은 use_recommender fixture로 교체.
"""

import json

from fastapi.testclient import TestClient


class TestRecommend:
    """POST /api/recommendations 테스트."""

    def test_recommendation(self, client: TestClient, taxonomy_file, seed_snippets, use_recommender):
        seed_snippets({"geo_asia_japan": "Japan"})
        provider = use_recommender(json.dumps({
            "recommended": "geo_europe_uk",
            "reasoning": "Europe is uncovered.",
            "alternatives": ["core_role_expert", "geo_asia_china"],
        }))

        response = client.post("/api/recommendations", json={"current_snippet": "geo_asia_japan"})

        assert response.status_code == 200
        data = response.json()
        assert data["recommendation"]["recommended"] == "geo_europe_uk"
        assert data["context"]["total_existing"] == 1
        assert data["context"]["total_missing"] == 4
        assert "CURRENT SNIPPET: geo_asia_japan" in provider.prompts[0]

    def test_unparseable_response(self, client: TestClient, taxonomy_file, use_recommender):
        use_recommender("no idea")

        data = client.post(
            "/api/recommendations", json={"current_snippet": "geo_asia_japan"}
        ).json()

        assert data["note"] == "Used fallback recommendation due to AI parsing issues"
        assert data["recommendation"]["recommended"] in data["context"]["balanced_suggestions"]

    def test_missing_current_snippet(self, client: TestClient, taxonomy_file, use_recommender):
        use_recommender("{}")

        response = client.post("/api/recommendations", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "MISSING_FIELDS"

    def test_missing_taxonomy(self, client: TestClient, tmp_path, use_recommender):
        use_recommender("{}")
        client.app.state.taxonomy_path = tmp_path / "absent.md"

        response = client.post("/api/recommendations", json={"current_snippet": "x"})

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TAXONOMY_NOT_FOUND"

    def test_provider_failure(self, client: TestClient, taxonomy_file, use_recommender):
        use_recommender(None)

        response = client.post("/api/recommendations", json={"current_snippet": "x"})

        assert response.status_code == 502
        assert response.json()["detail"]["message"] == "Failed to get recommendations"

    def test_without_api_key(self, client: TestClient, taxonomy_file):
        """OPENROUTER_API_KEY 없음 → 500 + 키 누락 코드."""
        response = client.post("/api/recommendations", json={"current_snippet": "x"})

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "OPENROUTER_KEY_MISSING"


class TestCoverage:
    """GET /api/recommendations/coverage 테스트."""

    def test_coverage(self, client: TestClient, taxonomy_file, seed_snippets):
        seed_snippets({"geo_asia_japan": "Japan", "core_role_expert": "Expert"})

        data = client.get("/api/recommendations/coverage", params={"limit": 2}).json()

        assert data["overall_coverage"] == 40
        assert data["category_gaps"]["core_"]["covered"] == 1
        assert data["category_gaps"]["geo_"]["missing"] == ["geo_asia_china", "geo_europe_uk"]
        assert data["missing"] == ["core_structure_chapter", "geo_asia_china", "geo_europe_uk"]
        # core 1/2 > geo 1/3 이므로 geo 후보가 먼저
        assert data["balanced_suggestions"][0] == "geo_asia_china"
        assert len(data["balanced_suggestions"]) == 2

    def test_project_taxonomy(self, client: TestClient):
        """기본 설정의 taxonomy.md 사용."""
        data = client.get("/api/recommendations/coverage").json()

        assert set(data["category_gaps"]) == {"core_", "geo_", "industry_"}
        assert data["overall_coverage"] == 0
