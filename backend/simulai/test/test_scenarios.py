import json

import pytest

from simulai.core.pdf_utils import report_to_pdf


class FakeStorage:
    def __init__(self):
        self.uploaded = []

    async def upload(self, content, filename, content_type, folder=""):
        self.uploaded.append(filename)
        return f"https://bucket.simulai.io/{folder}/{filename}"


@pytest.fixture
def storage(monkeypatch):
    fake = FakeStorage()

    async def fake_get_storage(db):
        return fake

    monkeypatch.setattr("simulai.services.scenario_services.get_storage", fake_get_storage)
    return fake


def _briefing_pdf() -> bytes:
    return report_to_pdf({"title": "Customer briefing", "content": "The customer wants a red sedan."}, {})


def test_create_scenario(client, make_scenario):
    scenario = make_scenario(time_limit=15)
    assert scenario["title"] == "Sales call"
    assert scenario["status"] == "published"
    assert scenario["time_limit"] == 15
    assert scenario["files"] == []
    assert [aspect["label"] for aspect in scenario["aspects"]] == ["Empathy", "Closing"]


def test_create_scenario_requires_title(client, admin_headers):
    response = client.post("/api/scenarios", headers=admin_headers, data={"context": "No title here"})
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_create_scenario_as_json(client, admin_headers):
    response = client.post("/api/scenarios", headers=admin_headers, json={
        "title": "Negotiation",
        "aspects": [{"label": "Listening", "value": "listening"}],
    })
    assert response.status_code == 201
    assert response.json()["data"]["status"] == "draft"


def test_create_scenario_with_pdf(client, admin_headers, storage):
    response = client.post(
        "/api/scenarios",
        headers=admin_headers,
        data={"title": "Briefed call", "aspects": json.dumps([{"label": "Empathy", "value": "empathy"}])},
        files=[("files", ("briefing.pdf", _briefing_pdf(), "application/pdf"))],
    )
    assert response.status_code == 201, response.text
    scenario = response.json()["data"]
    assert scenario["files"] == ["https://bucket.simulai.io/scenarios/briefing.pdf"]
    assert storage.uploaded == ["briefing.pdf"]

    contents = client.get(f"/api/scenarios/{scenario['id']}/pdf-contents", headers=admin_headers).json()["data"]
    assert "=== briefing.pdf ===" in contents["pdf_contents"]
    assert "red sedan" in contents["pdf_contents"]


def test_pdf_contents_when_nothing_was_uploaded(client, admin_headers, make_scenario):
    scenario = make_scenario()
    response = client.get(f"/api/scenarios/{scenario['id']}/pdf-contents", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["pdf_contents"] == ""
    assert response.json()["message"] == "No PDF content available for this scenario"


def test_update_scenario_keeps_selected_files(client, admin_headers, storage):
    created = client.post(
        "/api/scenarios",
        headers=admin_headers,
        data={"title": "With files"},
        files=[
            ("files", ("a.txt", b"first", "text/plain")),
            ("files", ("b.txt", b"second", "text/plain")),
        ],
    ).json()["data"]
    assert len(created["files"]) == 2

    response = client.put(
        f"/api/scenarios/{created['id']}",
        headers=admin_headers,
        data={"title": "Renamed", "existing_files": json.dumps([created["files"][0]])},
        files=[("files", ("c.txt", b"third", "text/plain"))],
    )
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["title"] == "Renamed"
    assert updated["files"] == [created["files"][0], "https://bucket.simulai.io/scenarios/c.txt"]
    # Untouched fields survive a partial update
    assert updated["status"] == "draft"
    assert updated["show_image_prompt"] is False


def test_user_sees_only_assigned_scenarios(client, make_user, make_scenario):
    user = make_user()
    assigned = make_scenario(title="Assigned", user_id_assigned=user["id"])
    other = make_scenario(title="Other")

    response = client.get("/api/scenarios", headers=user["headers"])
    assert [scenario["id"] for scenario in response.json()["data"]] == [assigned["id"]]

    assert client.get(f"/api/scenarios/{assigned['id']}", headers=user["headers"]).status_code == 200
    assert client.get(f"/api/scenarios/{other['id']}", headers=user["headers"]).status_code == 403
    assert client.get(f"/api/scenarios/user/{user['id']}", headers=user["headers"]).status_code == 200

    # Plain users cannot edit
    response = client.put(f"/api/scenarios/{assigned['id']}", headers=user["headers"], json={"title": "Hacked"})
    assert response.status_code == 403


def test_company_manager_manages_company_scenarios(client, admin_headers, make_user, make_scenario):
    company = client.post("/api/companies", headers=admin_headers, json={"name": "Acme"}).json()["data"]
    manager = make_user(role="company", company_id=company["id"])
    employee = make_user(company_id=company["id"])
    outsider = make_user()
    inside = make_scenario(title="Inside", user_id_assigned=employee["id"])
    outside = make_scenario(title="Outside", user_id_assigned=outsider["id"])

    ids = [scenario["id"] for scenario in client.get("/api/scenarios", headers=manager["headers"]).json()["data"]]
    assert inside["id"] in ids and outside["id"] not in ids

    response = client.put(f"/api/scenarios/{inside['id']}", headers=manager["headers"], json={"status": "archived"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "archived"
    assert client.delete(f"/api/scenarios/{outside['id']}", headers=manager["headers"]).status_code == 403


def test_read_unknown_scenario(client, admin_headers):
    response = client.get("/api/scenarios/9999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Scenario not found"


def test_delete_scenario_removes_conversations(client, admin_headers, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"])
    client.post(f"/api/scenarios/{scenario['id']}/conversations", headers=user["headers"], json={
        "conversation": [{"role": "user", "message": "Hola"}],
        "elapsedTime": 30,
    })

    assert client.delete(f"/api/scenarios/{scenario['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/scenarios/{scenario['id']}", headers=admin_headers).status_code == 404
    conversations = client.get("/api/scenarios/conversations", headers=admin_headers).json()["data"]
    assert all(conversation["scenario_id"] != scenario["id"] for conversation in conversations)


def test_bulk_delete(client, admin_headers, make_scenario):
    first, second, kept = make_scenario(title="One"), make_scenario(title="Two"), make_scenario(title="Three")
    response = client.request("DELETE", "/api/scenarios/bulk", headers=admin_headers, json={"ids": [first["id"], second["id"]]})
    assert response.status_code == 200
    assert response.json()["data"]["deleted"] == 2

    remaining = [scenario["id"] for scenario in client.get("/api/scenarios", headers=admin_headers).json()["data"]]
    assert remaining == [kept["id"]]


def test_generate_image(client, admin_headers, fake_llm, monkeypatch):
    async def fake_get_llm_client(db, provider):
        return fake_llm

    monkeypatch.setattr("simulai.routes.endpoints.scenarios.get_llm_client", fake_get_llm_client)
    response = client.post("/api/scenarios/generate-image", headers=admin_headers, json={"prompt": "A friendly car dealer"})
    assert response.status_code == 200
    assert response.json()["data"]["url"] == "https://images.simulai.io/persona.png"


def test_process_audio_and_speech(client, admin_headers, make_scenario, fake_llm, monkeypatch):
    async def fake_get_llm_client(db, provider):
        return fake_llm

    monkeypatch.setattr("simulai.routes.endpoints.scenarios.get_llm_client", fake_get_llm_client)
    scenario = make_scenario()

    response = client.post(
        f"/api/scenarios/{scenario['id']}/process-audio",
        headers=admin_headers,
        files={"audio": ("clip.webm", b"\x1aE\xdf\xa3", "audio/webm")},
    )
    assert response.status_code == 200
    assert response.json()["data"]["text"] == "hola, buenos días"

    speech = client.post(f"/api/scenarios/{scenario['id']}/speech", headers=admin_headers, json={"text": "Hola"})
    assert speech.status_code == 200
    assert speech.headers["content-type"] == "audio/mpeg"
    assert speech.content == b"ID3-fake-mp3"


def test_ai_endpoints_without_api_key(client, admin_headers, make_scenario):
    scenario = make_scenario()
    response = client.post(f"/api/scenarios/{scenario['id']}/speech", headers=admin_headers, json={"text": "Hola"})
    assert response.status_code == 503
    assert response.json()["success"] is False
