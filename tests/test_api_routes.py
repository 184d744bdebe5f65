"""
tests/test_api_routes.py -- Integration tests for the auth REST routes.

These tests exercise the full stack: FastAPI routing -> request model
validation -> CredentialService -> AccountStore (shared-memory SQLite) ->
response serialization and the error envelope.

Coverage:
  - POST /auth/register: 201, 409 on duplicate, 422 on empty/oversized input
  - POST /auth/login: 200 with bearer token, 401 identical for wrong password and
    unknown user, 503 on store failure, Cache-Control: no-store
  - GET /auth/me: 200 with a token, 401 without or with a bad one
  - validation errors never echo the submitted password

Fixtures used (from conftest.py):
  - api_client: (client, issuer)
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.errors import StoreError
from auth.tokens import TokenIssuer

ApiClient = tuple[TestClient, TokenIssuer]


def _register(client: TestClient, username: str, password: str):
    return client.post("/api/v1/auth/register", json={"username": username, "password": password})


def _login(client: TestClient, username: str, password: str):
    return client.post("/api/v1/auth/login", json={"username": username, "password": password})


class TestRegisterRoute:
    def test_register_returns_201(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        resp = _register(client, "reg-alice", "correcthorse")
        assert resp.status_code == 201
        assert resp.json() == {"username": "reg-alice", "role": "USER"}

    def test_register_response_has_no_password_material(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        resp = _register(client, "reg-quiet", "correcthorse")
        assert "correcthorse" not in resp.text
        assert "$2b$" not in resp.text

    def test_duplicate_returns_409(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        assert _register(client, "reg-dup", "first").status_code == 201
        resp = _register(client, "reg-dup", "second")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "conflict"

    def test_empty_password_returns_422(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        resp = _register(client, "reg-empty", "")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_empty_username_returns_422(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        assert _register(client, "", "pw").status_code == 422

    def test_missing_fields_return_422(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        assert client.post("/api/v1/auth/register", json={"username": "x"}).status_code == 422

    def test_multibyte_password_over_bcrypt_limit_returns_422(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        resp = _register(client, "reg-long", "é" * 40)
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"

    def test_validation_error_does_not_echo_password(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        secret = "s3cret-" + "x" * 80
        resp = _register(client, "reg-echo", secret)
        assert resp.status_code == 422
        assert secret not in resp.text


class TestLoginRoute:
    def test_login_returns_bearer_token(self, api_client: ApiClient) -> None:
        client, issuer = api_client
        _register(client, "login-alice", "correcthorse")
        resp = _login(client, "login-alice", "correcthorse")
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 86400
        assert body["username"] == "login-alice"
        assert body["role"] == "USER"
        assert issuer.decode(body["access_token"]).username == "login-alice"
        assert resp.headers["cache-control"] == "no-store"

    def test_wrong_password_and_unknown_user_are_indistinguishable(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        _register(client, "login-bob", "correcthorse")
        wrong_password = _login(client, "login-bob", "wrong")
        unknown_user = _login(client, "login-nobody", "anything")
        assert wrong_password.status_code == unknown_user.status_code == 401
        assert wrong_password.json() == unknown_user.json()
        assert wrong_password.json()["error"]["code"] == "bad_credentials"
        assert wrong_password.headers["cache-control"] == "no-store"

    def test_store_failure_returns_503(self, api_client: ApiClient, monkeypatch) -> None:
        client, _issuer = api_client
        store = client.app.state.account_store

        def broken(username):
            raise StoreError("database unreachable")

        monkeypatch.setattr(store, "find_account", broken)
        resp = _login(client, "login-anyone", "pw")
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "service_unavailable"
        assert "unreachable" not in resp.text


class TestMeRoute:
    def test_me_with_token(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        _register(client, "me-carol", "correcthorse")
        token = _login(client, "me-carol", "correcthorse").json()["access_token"]
        resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["username"] == "me-carol"
        assert body["role"] == "USER"

    def test_me_without_token_returns_401(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        resp = client.get("/api/v1/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_me_with_bad_token_returns_401(self, api_client: ApiClient) -> None:
        client, _issuer = api_client
        resp = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401
