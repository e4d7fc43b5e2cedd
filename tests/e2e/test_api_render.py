"""
test_api_render.py - Render API E2E 테스트

엔드포인트:
- POST /api/render
- POST /api/render/validate
- POST /api/render/references
- POST /api/render/preview
"""

from fastapi.testclient import TestClient


class TestRender:
    """POST /api/render 테스트."""

    def test_nested_render(self, client: TestClient, seed_snippets):
        seed_snippets({"greet": "Hello {{name}}!", "name": "Ada"})

        response = client.post("/api/render", json={"template": "{{greet}} Bye {{name}}."})

        assert response.status_code == 200
        data = response.json()
        assert data["rendered"] == "Hello Ada! Bye Ada."
        assert set(data["used_snippets"]) == {"greet", "name"}
        assert data["errors"] == []

    def test_no_references(self, client: TestClient):
        data = client.post("/api/render", json={"template": "plain text"}).json()

        assert data == {"rendered": "plain text", "used_snippets": [], "errors": []}

    def test_missing_template(self, client: TestClient):
        response = client.post("/api/render", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "MISSING_TEMPLATE"

    def test_invalid_template(self, client: TestClient):
        response = client.post("/api/render", json={"template": "{{a{{b}}}}"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "INVALID_TEMPLATE"
        assert "Nested brackets are not supported" in detail["errors"]

    def test_nothing_resolved_rejected(self, client: TestClient):
        """에러 + 변화 없음 → 400."""
        response = client.post("/api/render", json={"template": "Hi {{ghost}}"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "RENDER_FAILED"
        assert detail["errors"] == ["Snippet not found: ghost"]

    def test_partial_render_returns_warnings(self, client: TestClient, seed_snippets):
        """일부 치환 성공 → 200 + 에러 경고."""
        seed_snippets({"name": "Ada"})

        response = client.post("/api/render", json={"template": "{{name}} {{ghost}}"})

        assert response.status_code == 200
        data = response.json()
        assert data["rendered"] == "Ada {{ghost}}"
        assert data["errors"] == ["Snippet not found: ghost"]

    def test_cycle_hits_depth_limit(self, client: TestClient, seed_snippets):
        """기본 설정: 순환은 깊이 제한으로 종료."""
        seed_snippets({"x": "X {{y}}", "y": "Y {{x}}"})

        response = client.post("/api/render", json={"template": "{{x}}"})

        assert response.status_code == 200
        data = response.json()
        assert data["errors"] == ["Maximum nesting depth reached"]
        assert data["rendered"].startswith("X Y X Y")

    def test_strict_cycle_mode(self, client: TestClient, seed_snippets):
        """render.detect_cycles=true → 순환 에러."""
        seed_snippets({"x": "X {{y}}", "y": "Y {{x}}"})
        client.app.state.config = {"render": {"max_depth": 5, "detect_cycles": True}}

        data = client.post("/api/render", json={"template": "{{x}}"}).json()

        assert data["rendered"] == "X Y {{x}}"
        assert data["errors"] == ["Circular dependency detected: x"]


class TestValidate:
    """POST /api/render/validate 테스트."""

    def test_valid(self, client: TestClient):
        data = client.post("/api/render/validate", json={"template": "{{a}} and {{b}}"}).json()

        assert data == {"valid": True, "errors": []}

    def test_empty_is_valid(self, client: TestClient):
        assert client.post("/api/render/validate", json={"template": ""}).json()["valid"] is True

    def test_multiple_errors(self, client: TestClient):
        data = client.post("/api/render/validate", json={"template": "{{}} {{a"}).json()

        assert data["valid"] is False
        assert data["errors"] == [
            "Mismatched brackets: ensure all {{ are closed with }}",
            "Empty snippet references found",
        ]


class TestReferences:
    """POST /api/render/references 테스트."""

    def test_first_occurrence_order(self, client: TestClient):
        data = client.post(
            "/api/render/references", json={"template": "{{b}} {{ a }} {{b}}"}
        ).json()

        assert data == {"references": ["b", "a"]}


class TestPreview:
    """POST /api/render/preview 테스트."""

    def test_known_snippets_only(self, client: TestClient, seed_snippets):
        seed_snippets({"short": "Hi", "long": "x" * 60})

        data = client.post(
            "/api/render/preview", json={"template": "{{short}} {{long}} {{ghost}}"}
        ).json()

        assert data["preview"] == "[Hi] [" + "x" * 50 + "...] {{ghost}}"
