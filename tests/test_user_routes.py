"""Integration tests for POST /signup and POST /signin.

Covers:
  - signup returns a token; duplicate username is a 400 tagged "input" and
    writes no second row
  - signin with correct password returns a token whose identity matches
    the stored user; that token opens protected routes
  - bad username and bad password both answer 401 {"message": "nope"}
  - request validation failures answer 400 tagged "input"
  - token responses are not cacheable

Fixtures used (from conftest.py):
  - api_client: (client, token, uid) with seeded user testuser / testpass123
  - new_user: callable that signs up a throwaway user
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.store import UserStore


class TestSignup:
    def test_signup_returns_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/signup", json={"username": "fresh-user", "password": "pw123456"})
        assert resp.status_code == 200, resp.text
        assert isinstance(resp.json()["token"], str)
        assert resp.headers["Cache-Control"] == "no-store"

    def test_signup_token_identity_matches_stored_user(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        token = client.post("/signup", json={"username": "identity-check", "password": "pw123456"}).json()["token"]
        user_store: UserStore = client.app.state.user_store
        identity = client.app.state.tokens.verify(token)
        stored = user_store.get_by_username("identity-check")
        assert stored is not None
        assert identity.id == stored.id
        assert identity.username == "identity-check"

    def test_password_is_stored_hashed(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        client.post("/signup", json={"username": "hashed-check", "password": "plain-text-pw"})
        stored = client.app.state.user_store.get_by_username("hashed-check")
        assert stored.hashed_password != "plain-text-pw"
        assert stored.hashed_password.startswith("$2b$")

    def test_duplicate_username_is_input_error(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        user_store: UserStore = client.app.state.user_store
        first = client.post("/signup", json={"username": "dup", "password": "pw123456"})
        assert first.status_code == 200
        count_before = user_store.count()

        second = client.post("/signup", json={"username": "dup", "password": "other-pw"})
        assert second.status_code == 400
        assert second.json()["type"] == "input"
        assert user_store.count() == count_before

    def test_missing_password_is_input_error(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/signup", json={"username": "no-password"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["message"] == "invalid input"
        assert data["type"] == "input"
        assert data["errors"]

    def test_oversized_multibyte_password_is_input_error(self, api_client: tuple[TestClient, str, str]) -> None:
        """40 characters but 80 bytes: passes the field limit, fails bcrypt's byte limit."""
        client, _token, _uid = api_client
        resp = client.post("/signup", json={"username": "long-pw", "password": "é" * 40})
        assert resp.status_code == 400
        assert resp.json()["type"] == "input"
        assert client.app.state.user_store.get_by_username("long-pw") is None


class TestSignin:
    def test_valid_signin_returns_working_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, uid = api_client
        resp = client.post("/signin", json={"username": "testuser", "password": "testpass123"})
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        assert client.app.state.tokens.verify(token).id == uid

        headers = {"Authorization": f"Bearer {token}"}
        created = client.post("/api/product", json={"name": "Signed-in"}, headers=headers)
        assert created.status_code == 200
        assert created.json()["data"]["belongs_to_id"] == uid

    def test_wrong_password_is_nope(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/signin", json={"username": "testuser", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "nope"

    def test_unknown_username_is_nope(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        resp = client.post("/signin", json={"username": "ghost", "password": "testpass123"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "nope"

    def test_signin_after_signup(self, api_client: tuple[TestClient, str, str], new_user) -> None:
        client, _token, _uid = api_client
        new_user(username="roundtrip", password="pw-roundtrip")
        resp = client.post("/signin", json={"username": "roundtrip", "password": "pw-roundtrip"})
        assert resp.status_code == 200
        assert client.app.state.tokens.verify(resp.json()["token"]).username == "roundtrip"
