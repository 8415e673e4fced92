"""
Tests for /api/auth/forgot-password, /reset-password and /validate-reset-token.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from identity_provider import password_reset, rate_limit
from identity_provider.database import SessionLocal, init_db
from identity_provider.main import app
from identity_provider.models import PasswordResetToken, User

PASSWORD = "old-password-1"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def fresh():
    init_db()
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def delivered(monkeypatch):
    tokens = []
    monkeypatch.setattr(password_reset, "deliver_reset_token", lambda user, token: tokens.append(token))
    return tokens


@pytest.fixture
def registered(client):
    email = f"r-{uuid.uuid4().hex[:12]}@example.com"
    assert client.post("/api/auth/register", json={"email": email, "password": PASSWORD}).status_code == 201
    return email


def test_forgot_password_same_answer_for_unknown_email(client, registered, delivered):
    known = client.post("/api/auth/forgot-password", json={"email": registered})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json() == {"message": password_reset.FORGOT_PASSWORD_MESSAGE}
    assert len(delivered) == 1


def test_forgot_password_bad_email_is_400(client):
    assert client.post("/api/auth/forgot-password", json={"email": "nope"}).status_code == 400


def test_reset_flow(client, registered, delivered):
    tokens = client.post("/api/auth/login", json={"email": registered, "password": PASSWORD}).json()
    client.post("/api/auth/forgot-password", json={"email": registered})
    token = delivered[0]

    assert client.get("/api/auth/validate-reset-token", params={"token": token}).json() == {"valid": True}

    r = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "new-password-1"})
    assert r.status_code == 200

    # Token is single-use
    r = client.get("/api/auth/validate-reset-token", params={"token": token})
    assert r.json()["valid"] is False
    r = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "another-pass-1"})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_token"

    # Refresh tokens issued before the reset are revoked
    r = TestClient(app).post("/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 401

    assert client.post("/api/auth/login", json={"email": registered, "password": PASSWORD}).status_code == 401
    assert client.post("/api/auth/login", json={"email": registered, "password": "new-password-1"}).status_code == 200


def test_reset_rejects_short_password(client, registered, delivered):
    client.post("/api/auth/forgot-password", json={"email": registered})
    r = client.post("/api/auth/reset-password", json={"token": delivered[0], "newPassword": "short"})
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_request"


def test_expired_reset_token(client, registered):
    value = "reset-" + uuid.uuid4().hex
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == registered).one()
        db.add(
            PasswordResetToken(
                token=value,
                user_id=user.id,
                expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
            )
        )
        db.commit()
    finally:
        db.close()
    r = client.get("/api/auth/validate-reset-token", params={"token": value})
    assert r.json() == {"valid": False, "message": password_reset.INVALID_TOKEN_MESSAGE}
    r = client.post("/api/auth/reset-password", json={"token": value, "newPassword": "new-password-1"})
    assert r.status_code == 400


def test_validate_without_token(client):
    assert client.get("/api/auth/validate-reset-token").json()["valid"] is False


def test_default_delivery_stores_token_without_logging_it(client, registered, caplog):
    caplog.set_level(logging.INFO, logger="identity_provider.password_reset")
    assert client.post("/api/auth/forgot-password", json={"email": registered}).status_code == 200

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == registered).one()
        rows = db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).all()
    finally:
        db.close()
    assert len(rows) == 1
    assert "Password reset link generated" in caplog.text
    assert rows[0].token not in caplog.text
