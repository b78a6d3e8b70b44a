from fastapi.testclient import TestClient

from nicorag_gateway.app.main import create_app

from conftest import ALLOWED_ORIGIN, make_settings


def test_health_and_ping(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.text == "ok"

    r = client.get("/ping")
    assert r.status_code == 200
    assert r.text == "pong"


def test_root_marker(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text == "API OK (Easy Auth)"


def test_diag_reports_presence_without_secrets(client):
    r = client.get("/diag")
    assert r.status_code == 200
    body = r.json()
    assert body["hasEndpoint"] is True
    assert body["hasKey"] is True
    assert body["deployment"] == "gpt-chat"
    assert body["runtimeVersion"].startswith("python ")
    assert "aoai-secret-key" not in r.text


def test_diag_when_unconfigured():
    c = TestClient(create_app(make_settings(aoai_endpoint="", aoai_key="")))
    body = c.get("/diag").json()
    assert body["hasEndpoint"] is False
    assert body["hasKey"] is False


def test_unknown_path_is_not_found_envelope(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "not_found", "detail": "/nope"}


# ---------- Origin gate ----------

def test_blocked_origin_is_rejected(client):
    r = client.get("/health", headers={"Origin": "https://evil.example"})
    assert r.status_code == 403
    assert r.json()["error"] == "cors_blocked"


def test_blocked_origin_is_rejected_on_preflight_too(client):
    r = client.options("/chat", headers={"Origin": "https://evil.example"})
    assert r.status_code == 403


def test_allowed_origin_gets_cors_headers(client):
    r = client.get("/health", headers={"Origin": ALLOWED_ORIGIN})
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert "access-control-allow-credentials" not in r.headers


def test_no_origin_is_always_allowed():
    strict = TestClient(create_app(make_settings(allowed_origins=(), cors_allow_all_when_empty=False)))
    r = strict.get("/health")
    assert r.status_code == 200
    assert "access-control-allow-origin" not in r.headers


def test_preflight_on_any_path(client):
    r = client.options("/anything/at/all", headers={"Origin": ALLOWED_ORIGIN})
    assert r.status_code == 204
    assert r.content == b""
    assert "POST" in r.headers["access-control-allow-methods"]
    assert "x-ms-token-aad-access-token" in r.headers["access-control-allow-headers"]


def test_permissive_mode_when_allow_list_empty():
    c = TestClient(create_app(make_settings(allowed_origins=())))
    r = c.get("/health", headers={"Origin": "https://anything.example"})
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"


def test_strict_mode_when_allow_list_empty():
    c = TestClient(create_app(make_settings(allowed_origins=(), cors_allow_all_when_empty=False)))
    r = c.get("/health", headers={"Origin": "https://anything.example"})
    assert r.status_code == 403
