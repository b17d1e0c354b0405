"""Tests for the text-generation integration and its HTTP endpoints."""

import json
from types import SimpleNamespace

import pytest

from ai_service import AIService, truncate_fields
from errors import IntegrationError
from rate_limit import RateLimiter


class FakeAI:
    """Stands in for AIService; records calls instead of hitting the network."""

    def __init__(self):
        self.calls = []

    def improve_project(self, data):
        self.calls.append(("improve_project", data))
        return {"suggested_description": "better", "suggested_result": "clearer",
                "improvements": ["a"], "missing_info": ["b"]}

    def review_project(self, data):
        self.calls.append(("review_project", data))
        return {"improvements": ["a"], "missing_info": []}

    def improve_offer(self, data):
        self.calls.append(("improve_offer", data))
        return {"suggested_offer": {"approach": "x", "guarantees": "y", "risks": "z"}, "improvements": []}

    def review_offer(self, data):
        self.calls.append(("review_offer", data))
        return {"improvements": [], "missing_info": ["price breakdown"]}


def _fake_completion(content):
    message = SimpleNamespace(content=content)
    response = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    create = lambda **kwargs: response
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


class TestTruncation:
    """Tests for per-field truncation."""

    def test_long_fields_are_cut(self):
        payload = {"description": "x" * 20, "offer": {"approach": "y" * 5, "tags": ["z" * 30]}, "n": 3}
        out = truncate_fields(payload, 10)
        assert out["description"] == "x" * 10 + "..."
        assert out["offer"]["approach"] == "y" * 5
        assert out["offer"]["tags"] == ["z" * 10 + "..."]
        assert out["n"] == 3

    def test_payload_sent_is_truncated(self, monkeypatch):
        service = AIService("key", max_input_length=8)
        sent = {}

        def fake_complete(system_prompt, user_content):
            sent["payload"] = json.loads(user_content)
            return {}

        monkeypatch.setattr(service, "complete_json", fake_complete)
        service.review_project({"description": "a very long description", "template": "other"})
        assert sent["payload"]["description"] == "a very l..."


class TestAIService:
    """Tests for response parsing and normalization."""

    def test_normalizes_missing_keys(self):
        service = AIService("key")
        service._client = _fake_completion(json.dumps({"improvements": ["one", None, ""]}))
        out = service.improve_project({"title": "t", "description": "d"})
        assert out == {
            "suggested_description": "",
            "suggested_result": "",
            "improvements": ["one"],
            "missing_info": [],
        }

    def test_improve_offer_shape(self):
        service = AIService("key")
        service._client = _fake_completion(json.dumps({"suggested_offer": {"approach": "A"}}))
        out = service.improve_offer({"project": {}, "offer": {"approach": "a"}})
        assert out["suggested_offer"] == {"approach": "A", "guarantees": "", "risks": ""}

    def test_bad_json_is_integration_error(self):
        service = AIService("key")
        service._client = _fake_completion("not json at all")
        with pytest.raises(IntegrationError):
            service.review_offer({"project": {}, "offer": {}})

    def test_transport_error_is_integration_error(self):
        def boom(**kwargs):
            raise TimeoutError("timed out")

        service = AIService("key")
        service._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=boom)))
        with pytest.raises(IntegrationError):
            service.review_project({"description": "d"})

    def test_not_configured(self):
        with pytest.raises(IntegrationError):
            AIService(None).review_project({"description": "d"})


class TestAIEndpoints:
    """Tests for /ai/* routes, including the per-session quota."""

    @pytest.fixture
    def fake_ai(self, app):
        fake = FakeAI()
        app.extensions["ai_service"] = fake
        return fake

    def test_project_improve_requires_login(self, client, fake_ai):
        assert client.post("/ai/project/improve", json={"description": "d"}).status_code == 401
        assert fake_ai.calls == []

    def test_project_improve(self, client, login, fake_ai):
        login("xena")
        resp = client.post("/ai/project/improve", json={"title": "t", "description": "d", "template": "design"})
        assert resp.status_code == 200
        assert resp.get_json()["suggested_description"] == "better"
        name, data = fake_ai.calls[0]
        assert name == "improve_project"
        assert data["template"] == "design"

    def test_offer_review_is_public(self, client, fake_ai):
        resp = client.post("/ai/offer/review", json={
            "project": {"title": "t", "description": "d"},
            "offer": {"approach": "plan", "price": "10"},
        })
        assert resp.status_code == 200
        assert resp.get_json()["missing_info"] == ["price breakdown"]

    def test_offer_improve_validation(self, client, fake_ai):
        resp = client.post("/ai/offer/improve", json={"project": {}, "offer": {"approach": ""}})
        assert resp.status_code == 400
        assert fake_ai.calls == []

    def test_rate_limited(self, app, client, fake_ai):
        app.extensions["rate_limiter"] = RateLimiter(2, 3600)
        body = {"project": {"title": "t"}, "offer": {"approach": "plan"}}

        assert client.post("/ai/offer/review", json=body).status_code == 200
        assert client.post("/ai/offer/review", json=body).status_code == 200
        resp = client.post("/ai/offer/review", json=body)
        assert resp.status_code == 429
        assert len(fake_ai.calls) == 2

        # another session has its own quota
        assert app.test_client().post("/ai/offer/review", json=body).status_code == 200

    def test_integration_failure_is_500(self, app, client):
        class Broken(FakeAI):
            def review_offer(self, data):
                raise IntegrationError()

        app.extensions["ai_service"] = Broken()
        resp = client.post("/ai/offer/review", json={"project": {}, "offer": {"approach": "p"}})
        assert resp.status_code == 500
        assert resp.get_json() == {"message": "AI service unavailable"}
