# tests/conftest.py
from __future__ import annotations

import json
from typing import Any, Dict, List
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient

# With src/ layout and `pip install -e .`, we can import the app package directly:
from nicorag_gateway.app.core.config import Settings, USER_TOKEN_HEADER
from nicorag_gateway.app.main import create_app

# ---------- Fake upstreams ----------
TENANT_ID = "contoso-tenant"
AOAI_ENDPOINT = "https://aoai-test.openai.azure.com"
DEPLOYMENT = "gpt-chat"
API_VERSION = "2024-06-01"

TOKEN_URL = f"https://login.microsoftonline.com/{TENANT_ID}/oauth2/v2.0/token"
GRAPH_ME_URL = "https://graph.microsoft.com/v1.0/me"
COMPLETION_URL = (
    f"{AOAI_ENDPOINT}/openai/deployments/{DEPLOYMENT}/chat/completions?api-version={API_VERSION}"
)

ALLOWED_ORIGIN = "https://app.example"


def make_settings(**overrides: Any) -> Settings:
    base: Dict[str, Any] = dict(
        allowed_origins=(ALLOWED_ORIGIN,),
        tenant_id=TENANT_ID,
        client_id="api-client-id",
        client_secret="api-client-secret",
        aoai_endpoint=AOAI_ENDPOINT + "/",  # trailing slash is stripped
        aoai_key="aoai-secret-key",
        aoai_deployment=DEPLOYMENT,
        aoai_api_version=API_VERSION,
        upstream_timeout_sec=5.0,
    )
    base.update(overrides)
    return Settings(**base)


def completion_payload(content: str = "Hello from mock AOAI.") -> Dict[str, Any]:
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1718000000,
        "model": "gpt-4o-mini",
        "choices": [
            {"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": content}},
        ],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


def sent_json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)


def sent_form(request: httpx.Request) -> Dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def sent_messages(httpx_mock) -> List[Dict[str, str]]:
    req = httpx_mock.get_request(url=COMPLETION_URL)
    assert req is not None, "completion endpoint was not called"
    return sent_json(req)["messages"]


# ---------- Fixtures ----------
@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))


@pytest.fixture
def user_headers() -> Dict[str, str]:
    return {USER_TOKEN_HEADER: "user-access-token"}


@pytest.fixture
def mock_obo_ok(httpx_mock):
    httpx_mock.add_response(
        url=TOKEN_URL,
        method="POST",
        json={"token_type": "Bearer", "expires_in": 3599, "access_token": "graph-token"},
    )


@pytest.fixture
def mock_completion_ok(httpx_mock):
    httpx_mock.add_response(url=COMPLETION_URL, method="POST", json=completion_payload())
