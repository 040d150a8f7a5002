import asyncio

from simulai.core.security import ENCRYPTED_PREFIX
from simulai.db.database import SessionLocal
from simulai.db.repository.settings import get_settings_row


def _raw_row():
    async def load():
        async with SessionLocal() as db:
            return await get_settings_row(db)

    return asyncio.run(load())


def test_settings_are_encrypted_at_rest(client, admin_headers):
    response = client.put("/api/settings", headers=admin_headers, json={
        "openai_key": "sk-test-123",
        "mail_host": "smtp.simulai.io",
        "mail_port": 465,
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["openai_key"] == "sk-test-123"
    assert data["mail_port"] == 465

    row = _raw_row()
    assert row.openai_key.startswith(ENCRYPTED_PREFIX)
    assert "sk-test-123" not in row.openai_key
    assert row.mail_port == 465

    fetched = client.get("/api/settings", headers=admin_headers).json()["data"]
    assert fetched["openai_key"] == "sk-test-123"
    assert fetched["mail_host"] == "smtp.simulai.io"


def test_partial_update_keeps_other_keys(client, admin_headers):
    client.put("/api/settings", headers=admin_headers, json={"openai_key": "sk-first", "heygen_key": "hg-first"})
    client.put("/api/settings", headers=admin_headers, json={"heygen_key": "hg-second"})

    data = client.get("/api/settings", headers=admin_headers).json()["data"]
    assert data["openai_key"] == "sk-first"
    assert data["heygen_key"] == "hg-second"


def test_empty_settings(client, admin_headers):
    response = client.get("/api/settings", headers=admin_headers)
    assert response.status_code == 200
    assert all(value is None for value in response.json()["data"].values())


def test_settings_are_admin_only(client, make_user):
    manager = make_user(role="company")
    assert client.get("/api/settings", headers=manager["headers"]).status_code == 403
    assert client.put("/api/settings", headers=manager["headers"], json={"openai_key": "sk"}).status_code == 403
