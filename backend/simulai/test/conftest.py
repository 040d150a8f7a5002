import asyncio
import os
import tempfile

ADMIN_EMAIL = "admin@simulai.io"
ADMIN_PASSWORD = "AdminPassword123"

# Configuration is read at import time, so the environment is prepared first
_tmp_dir = tempfile.mkdtemp(prefix="simulai-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = ADMIN_EMAIL
os.environ["ADMIN_PASSWORD"] = ADMIN_PASSWORD
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["SMTP_HOST"] = "smtp.simulai.io"
os.environ["SMTP_USER"] = "mailer"
os.environ["SMTP_PASSWORD"] = "mailer-password"
os.environ["SMTP_FROM_EMAIL"] = "noreply@simulai.io"

import pytest
from fastapi.testclient import TestClient

from simulai.main import app
from simulai.core.security import create_access_token
from simulai.db.database import create_tables, drop_tables


async def _reset_database():
    await drop_tables()
    await create_tables()


def bearer(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def client():
    asyncio.run(_reset_database())
    # Startup creates the tables and seeds the admin user
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    client.cookies.clear()
    return bearer(response.json()["data"]["id"])


@pytest.fixture
def make_user(client, admin_headers):
    counter = {"n": 0}

    def _make_user(role="user", company_id=None, department_ids=None, password="UserPassword123"):
        counter["n"] += 1
        response = client.post("/api/users", headers=admin_headers, json={
            "name": f"{role.title()} {counter['n']}",
            "lastname": "Tester",
            "email": f"{role}{counter['n']}@simulai.io",
            "password": password,
            "role": role,
            "company_id": company_id,
            "department_ids": department_ids or [],
        })
        assert response.status_code == 201, response.text
        user = response.json()["data"]
        user["headers"] = bearer(user["id"])
        return user

    return _make_user


@pytest.fixture
def make_scenario(client, admin_headers):
    def _make_scenario(**fields):
        data = {
            "title": "Sales call",
            "context": "You are a demanding customer buying a car.",
            "status": "published",
            "aspects": '[{"label": "Empathy", "value": "empathy"}, {"label": "Closing", "value": "closing"}]',
        }
        data.update({key: str(value) for key, value in fields.items()})
        response = client.post("/api/scenarios", headers=admin_headers, data=data)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make_scenario


class FakeLLMClient:
    """Stands in for LLMClient; records the chat calls it receives."""

    provider = "openai"

    def __init__(self, content="Empathy: 85\nClosing: 70"):
        self.content = content
        self.calls = []

    async def chat(self, messages, model=None, temperature=0.7, max_tokens=None):
        self.calls.append({"messages": messages, "model": model, "max_tokens": max_tokens})
        return {"content": self.content, "usage": {}, "model": model or "gpt-4o"}

    async def list_assistants(self, limit=100):
        return [{"id": "asst_1", "name": "Evaluator", "model": "gpt-4o"}]

    async def retrieve_assistant(self, assistant_id):
        return {"id": assistant_id, "name": "Evaluator", "model": "gpt-4o-mini", "instructions": "Be fair."}

    async def transcribe(self, filename, content):
        return "hola, buenos días"

    async def speech(self, text):
        return b"ID3-fake-mp3"

    async def generate_image(self, prompt):
        return "https://images.simulai.io/persona.png"


@pytest.fixture
def fake_llm():
    return FakeLLMClient()
