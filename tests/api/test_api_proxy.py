import httpx
import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from session.state import SessionState


class FakeProvider:
    def is_configured(self):
        return False

    def get_fixtures(self, live=False, date=None):
        return []

    def get_match_statistics(self, fixture_id):
        return None


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("SPORTMONKS_API_TOKEN", "SM_TOKEN")
    monkeypatch.setenv("SPORTMONKS_BASE_URL", "https://sm.test/v3/football")
    monkeypatch.setenv("GEMINI_API_KEY", "GKEY")
    monkeypatch.setenv("GEMINI_BASE_URL", "https://gl.test/v1beta")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    with TestClient(create_app(SessionState(FakeProvider(), save_delay=0))) as c:
        yield c


def test_sportmonks_forward(client, monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse(200, {"data": [{"id": 1}]})

    monkeypatch.setattr("api.routes.proxy.httpx.get", fake_get)
    r = client.get("/proxy/sportmonks", params={"endpoint": "livescores", "includes": "participants"})
    assert r.status_code == 200
    assert r.json() == {"data": [{"id": 1}]}
    url, params = calls[0]
    assert url == "https://sm.test/v3/football/livescores"
    assert params == {"api_token": "SM_TOKEN", "include": "participants"}


def test_sportmonks_missing_endpoint(client):
    r = client.get("/proxy/sportmonks")
    assert r.status_code == 400
    assert r.json() == {"error": "Missing endpoint parameter"}


def test_sportmonks_missing_token(client, monkeypatch):
    monkeypatch.delenv("SPORTMONKS_API_TOKEN", raising=False)
    from core.config import _reset_settings_cache_for_tests

    _reset_settings_cache_for_tests()
    r = client.get("/proxy/sportmonks", params={"endpoint": "livescores"})
    assert r.status_code == 500
    assert r.json()["error"] == "API token not configured"


def test_sportmonks_upstream_error(client, monkeypatch):
    monkeypatch.setattr(
        "api.routes.proxy.httpx.get",
        lambda url, params=None, timeout=None: FakeResponse(401, text="bad token"),
    )
    r = client.get("/proxy/sportmonks", params={"endpoint": "livescores"})
    assert r.status_code == 401
    body = r.json()
    assert body["status"] == 401
    assert body["details"] == "bad token"


def test_sportmonks_network_error(client, monkeypatch):
    def boom(url, params=None, timeout=None):
        raise httpx.ConnectError("down")

    monkeypatch.setattr("api.routes.proxy.httpx.get", boom)
    r = client.get("/proxy/sportmonks", params={"endpoint": "livescores"})
    assert r.status_code == 500
    assert "down" in r.json()["details"]


def test_gemini_forward(client, monkeypatch):
    calls = []

    def fake_post(url, params=None, json=None, timeout=None):
        calls.append((url, params, json))
        return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": "Ciao"}]}}]})

    monkeypatch.setattr("api.routes.proxy.httpx.post", fake_post)
    r = client.post("/proxy/gemini", json={"prompt": "analizza"})
    assert r.status_code == 200
    assert r.json() == {"text": "Ciao"}
    url, params, body = calls[0]
    assert url == "https://gl.test/v1beta/models/gemini-test:generateContent"
    assert params == {"key": "GKEY"}
    assert body["contents"][0]["parts"][0]["text"] == "analizza"


def test_gemini_missing_prompt(client):
    r = client.post("/proxy/gemini", json={})
    assert r.status_code == 400


def test_gemini_models(client, monkeypatch):
    monkeypatch.setattr(
        "api.routes.proxy.httpx.get",
        lambda url, params=None, timeout=None: FakeResponse(200, {"models": [{"name": "models/x"}]}),
    )
    r = client.get("/proxy/gemini/models")
    assert r.json()["models"][0]["name"] == "models/x"
