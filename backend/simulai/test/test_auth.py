import asyncio
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy import update

from simulai.core.security import create_access_token
from simulai.db.database import SessionLocal
from simulai.db.models.password_reset import PasswordReset

ADMIN_EMAIL = "admin@simulai.io"
ADMIN_PASSWORD = "AdminPassword123"


def test_login_sets_access_token_cookie(client):
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["email"] == ADMIN_EMAIL
    assert body["data"]["role"] == "admin"
    assert "password" not in body["data"]
    assert "accessToken" in response.cookies

    # The cookie alone authenticates the next request
    verify = client.get("/api/verify-token")
    assert verify.status_code == 200
    assert verify.json()["data"]["email"] == ADMIN_EMAIL


def test_login_with_wrong_password(client):
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["message"] == "Invalid email or password"


def test_verify_token_without_cookie(client):
    response = client.get("/api/verify-token")
    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized"


def test_expired_access_token_is_rejected(client, admin_headers):
    token = create_access_token({"sub": 1}, expires_delta=timedelta(minutes=-5))
    response = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"


def test_logout_clears_cookie(client):
    client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    response = client.post("/api/logout")
    assert response.status_code == 200
    client.cookies.clear()
    assert client.get("/api/verify-token").status_code == 401


def test_change_password(client, make_user):
    user = make_user()
    response = client.put("/api/profile/password", headers=user["headers"], json={
        "current_password": "UserPassword123",
        "new_password": "NewPassword456",
    })
    assert response.status_code == 200

    login = client.post("/api/login", json={"email": user["email"], "password": "NewPassword456"})
    assert login.status_code == 200


def test_change_password_requires_current_password(client, make_user):
    user = make_user()
    response = client.put("/api/profile/password", headers=user["headers"], json={
        "current_password": "not-my-password",
        "new_password": "NewPassword456",
    })
    assert response.status_code == 400


def _capture_mail(monkeypatch):
    sent = []

    async def fake_send_email(config, to_email, subject, html, text=""):
        sent.append({"to": to_email, "subject": subject, "html": html})
        return "<fake@simulai.io>"

    monkeypatch.setattr("simulai.routes.endpoints.auth.send_email", fake_send_email)
    return sent


def _token_from(mail: dict) -> str:
    return mail["html"].split("token=")[1].split('"')[0]


def test_password_reset_flow(client, make_user, monkeypatch):
    sent = _capture_mail(monkeypatch)
    user = make_user()

    response = client.post("/api/request-password-reset", json={"email": user["email"]})
    assert response.status_code == 200
    assert len(sent) == 1 and sent[0]["to"] == user["email"]

    token = _token_from(sent[0])
    reset = client.post("/api/reset-password", json={"token": token, "password": "ResetPassword789"})
    assert reset.status_code == 200
    assert client.post("/api/login", json={"email": user["email"], "password": "ResetPassword789"}).status_code == 200

    # A token works only once
    again = client.post("/api/reset-password", json={"token": token, "password": "AnotherPassword1"})
    assert again.status_code == 400


def test_password_reset_unknown_email_sends_nothing(client, monkeypatch):
    sent = _capture_mail(monkeypatch)
    response = client.post("/api/request-password-reset", json={"email": "nobody@simulai.io"})
    assert response.status_code == 200
    assert sent == []


def test_password_reset_mail_failure_gives_the_same_answer(client, make_user, monkeypatch):
    async def failing_send_email(config, to_email, subject, html, text=""):
        raise HTTPException(status_code=503, detail="SMTP Error: Failed to connect to email server.")

    monkeypatch.setattr("simulai.routes.endpoints.auth.send_email", failing_send_email)
    user = make_user()

    known = client.post("/api/request-password-reset", json={"email": user["email"]})
    unknown = client.post("/api/request-password-reset", json={"email": "nobody@simulai.io"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_password_reset_with_expired_token_is_rejected(client, make_user, monkeypatch):
    sent = _capture_mail(monkeypatch)
    user = make_user()
    client.post("/api/request-password-reset", json={"email": user["email"]})
    token = _token_from(sent[0])

    async def expire():
        async with SessionLocal() as db:
            await db.execute(
                update(PasswordReset)
                .where(PasswordReset.token == token)
                .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
            )
            await db.commit()

    asyncio.run(expire())
    response = client.post("/api/reset-password", json={"token": token, "password": "ResetPassword789"})
    assert response.status_code == 400
    assert response.json()["message"] == "Token expired"
    assert client.post("/api/login", json={"email": user["email"], "password": "UserPassword123"}).status_code == 200
