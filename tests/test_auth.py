"""Tests for authentication: passwords, JWT tokens and the auth endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from ideahub.models.user import User
from ideahub.services.auth import (
    authenticate,
    authenticate_user,
    create_access_token,
    decode_access_token,
)
from ideahub.services.errors import AlreadyExists
from ideahub.services.users import create_user
from tests.test_constants import TEST_PASSWORD, TEST_PASSWORD_WRONG, TEST_USERNAME


# ---------------------------------------------------------------------------
# Unit tests: auth service
# ---------------------------------------------------------------------------


class TestPasswordVerification:
    def test_correct_password(self):
        user = User(username=TEST_USERNAME)
        user.set_password(TEST_PASSWORD)
        assert user.verify_password(TEST_PASSWORD) is True
        assert user.password_hash != TEST_PASSWORD

    def test_wrong_password(self):
        user = User(username=TEST_USERNAME)
        user.set_password(TEST_PASSWORD)
        assert user.verify_password(TEST_PASSWORD_WRONG) is False


class TestAccessToken:
    def test_create_and_decode_token(self):
        token = create_access_token(data={"sub": TEST_USERNAME})
        payload = decode_access_token(token)
        assert payload is not None
        assert payload["sub"] == TEST_USERNAME
        assert "exp" in payload

    def test_invalid_token_returns_none(self):
        assert decode_access_token("not.a.valid.token") is None

    def test_tampered_token_returns_none(self):
        token = create_access_token(data={"sub": TEST_USERNAME})
        assert decode_access_token(token[:-4] + "XXXX") is None

    def test_expired_token_returns_none(self):
        token = create_access_token(data={"sub": TEST_USERNAME}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None


class TestAuthenticate:
    def test_credentials(self, db, make_user):
        alice = make_user(TEST_USERNAME)
        assert authenticate_user(db, TEST_USERNAME, TEST_PASSWORD).id == alice.id
        assert authenticate_user(db, TEST_USERNAME, TEST_PASSWORD_WRONG) is None
        assert authenticate_user(db, "nobody", TEST_PASSWORD) is None

    def test_token_to_principal(self, db, make_user):
        alice = make_user(TEST_USERNAME)
        token = create_access_token(data={"sub": TEST_USERNAME})
        assert authenticate(db, token) == alice.id
        assert authenticate(db, None) is None
        assert authenticate(db, "garbage") is None
        assert authenticate(db, create_access_token(data={"sub": "ghost"})) is None


# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_client(client_with_db: TestClient, make_user) -> TestClient:
    make_user(TEST_USERNAME)
    return client_with_db


class TestSignupEndpoint:
    def test_signup_returns_token(self, client_with_db):
        resp = client_with_db.post(
            "/api/auth/signup",
            json={"username": "newbie", "email": "Newbie@Example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 201
        token = resp.json()["access_token"]
        me = client_with_db.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "newbie@example.com"

    def test_signup_duplicate_username(self, auth_client):
        resp = auth_client.post(
            "/api/auth/signup",
            json={"username": TEST_USERNAME, "email": "other@example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Username is already registered"

    def test_signup_username_and_email_of_different_users(self, client_with_db, make_user):
        make_user("alice")
        make_user("bob")
        resp = client_with_db.post(
            "/api/auth/signup",
            json={"username": "alice", "email": "bob@example.com", "password": TEST_PASSWORD},
        )
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Username is already registered"


class TestCreateUser:
    def test_taken_email_reported(self, db, make_user):
        make_user("alice")
        with pytest.raises(AlreadyExists, match="Email is already registered"):
            create_user(db, "alicia", "ALICE@example.com", TEST_PASSWORD)

    def test_username_checked_before_email(self, db, make_user):
        make_user("alice")
        make_user("bob")
        with pytest.raises(AlreadyExists, match="Username is already registered"):
            create_user(db, "alice", "bob@example.com", TEST_PASSWORD)
        assert db.execute(select(func.count()).select_from(User)).scalar_one() == 2


class TestLoginEndpoint:
    def test_login_success(self, auth_client):
        resp = auth_client.post(
            "/api/auth/login",
            json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"
        # Cookie should be set
        assert "access_token" in resp.cookies

    def test_login_wrong_password(self, auth_client):
        resp = auth_client.post(
            "/api/auth/login",
            json={"username": TEST_USERNAME, "password": TEST_PASSWORD_WRONG},
        )
        assert resp.status_code == 401


class TestMeEndpoint:
    def test_me_with_cookie(self, auth_client):
        auth_client.post(
            "/api/auth/login",
            json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
        )
        resp = auth_client.get("/api/auth/me")
        assert resp.status_code == 200
        assert resp.json()["username"] == TEST_USERNAME

    def test_me_without_auth_returns_401(self, client_with_db):
        assert client_with_db.get("/api/auth/me").status_code == 401

    def test_logout_clears_cookie(self, auth_client):
        auth_client.post(
            "/api/auth/login",
            json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
        )
        resp = auth_client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert resp.json()["detail"] == "Logged out"
