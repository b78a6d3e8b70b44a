from conftest import GRAPH_ME_URL, TOKEN_URL


def test_graph_me_requires_user_token(client, httpx_mock):
    r = client.get("/graph/me")
    assert r.status_code == 401
    assert r.json()["error"] == "unauthorized"
    assert "x-ms-token-aad-access-token" in r.json()["detail"]
    assert httpx_mock.get_requests() == []


def test_graph_me_passthrough(client, user_headers, mock_obo_ok, httpx_mock):
    me = {"displayName": "Ada Lovelace", "mail": "ada@contoso.com", "id": "42"}
    httpx_mock.add_response(url=GRAPH_ME_URL, json=me)

    r = client.get("/graph/me", headers=user_headers)

    assert r.status_code == 200, r.text
    assert r.json() == me
    assert httpx_mock.get_request(url=GRAPH_ME_URL).headers["authorization"] == "Bearer graph-token"


def test_graph_error_status_is_passed_through_verbatim(client, user_headers, mock_obo_ok, httpx_mock):
    err = {"error": {"code": "InvalidAuthenticationToken", "message": "Access token is empty."}}
    httpx_mock.add_response(url=GRAPH_ME_URL, status_code=401, json=err)

    r = client.get("/graph/me", headers=user_headers)

    assert r.status_code == 401
    assert r.json() == err


def test_graph_me_exchange_failure_is_auth_error(client, user_headers, httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, method="POST", status_code=400, json={"error": "invalid_grant"})

    r = client.get("/graph/me", headers=user_headers)

    assert r.status_code == 502
    body = r.json()
    assert body["error"] == "auth_exchange_failed"
    assert "invalid_grant" in body["detail"]


def test_graph_me_non_object_token_response_is_auth_error(client, user_headers, httpx_mock):
    httpx_mock.add_response(url=TOKEN_URL, method="POST", status_code=500, json=["oops"])

    r = client.get("/graph/me", headers=user_headers)

    assert r.status_code == 502
    assert r.json()["error"] == "auth_exchange_failed"
