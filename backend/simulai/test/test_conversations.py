import pytest

from simulai.services.session_timer import SessionTimer


class FakeHeyGenClient:
    def __init__(self, api_key):
        self.api_key = api_key

    async def create_streaming_token(self):
        return f"stream-token-for-{self.api_key}"


@pytest.fixture
def heygen(client, admin_headers, monkeypatch):
    monkeypatch.setattr("simulai.services.simulation_services.HeyGenClient", FakeHeyGenClient)
    response = client.put("/api/settings", headers=admin_headers, json={
        "heygen_key": "hg-secret",
        "avatar_prompt_template": "Act as the following persona: CONTEXT_FOR_PERSONA",
    })
    assert response.status_code == 200


def _save(client, scenario, user, elapsed, **extra):
    body = {
        "conversation": [
            {"role": "assistant", "message": "Buenos días, ¿en qué le puedo ayudar?"},
            {"role": "user", "message": "Busco un coche rojo."},
        ],
        "facialExpressions": [{"timestamp": 1.0, "expressions": {"happy": 0.7, "neutral": 0.3}}],
        "elapsedTime": elapsed,
    }
    body.update(extra)
    return client.post(f"/api/scenarios/{scenario['id']}/conversations", headers=user["headers"], json=body)


def test_save_and_read_conversation(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"])

    response = _save(client, scenario, user, 95.5)
    assert response.status_code == 201
    saved = response.json()["data"]
    assert saved["user_id"] == user["id"]
    assert saved["elapsed_time"] == 95.5
    assert saved["conversation"][1]["message"] == "Busco un coche rojo."
    assert saved["facial_expressions"][0]["expressions"]["happy"] == 0.7

    listed = client.get(f"/api/scenarios/{scenario['id']}/conversations", headers=user["headers"]).json()["data"]
    assert [conversation["id"] for conversation in listed] == [saved["id"]]

    single = client.get(f"/api/scenarios/{scenario['id']}/conversations/{saved['id']}", headers=user["headers"])
    assert single.status_code == 200
    missing = client.get(f"/api/scenarios/{scenario['id']}/conversations/9999", headers=user["headers"])
    assert missing.status_code == 404


def test_user_cannot_save_for_someone_else(client, make_user, make_scenario):
    user, other = make_user(), make_user()
    scenario = make_scenario(user_id_assigned=user["id"])
    response = _save(client, scenario, user, 10, userId=other["id"])
    assert response.status_code == 403


def test_unassigned_user_cannot_save(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario()
    assert _save(client, scenario, user, 10).status_code == 403


def test_conversation_list_by_role(client, admin_headers, make_user, make_scenario):
    first, second = make_user(), make_user()
    _save(client, make_scenario(user_id_assigned=first["id"]), first, 10)
    _save(client, make_scenario(user_id_assigned=second["id"]), second, 20)

    mine = client.get("/api/scenarios/conversations", headers=first["headers"]).json()["data"]
    assert [conversation["user_id"] for conversation in mine] == [first["id"]]

    everything = client.get("/api/scenarios/conversations", headers=admin_headers).json()["data"]
    assert len(everything) == 2


def test_elapsed_time_reconciliation(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"], time_limit=10)
    url = f"/api/scenarios/{scenario['id']}/elapsed-time"

    timing = client.get(url, headers=user["headers"]).json()["data"]
    assert timing == {
        "time_limit": 10,
        "total_elapsed_time": 0.0,
        "partial_elapsed_time": 0.0,
        "remaining_time": 600.0,
        "conversations_count": 0,
    }

    _save(client, scenario, user, 120)
    response = client.put(f"/api/scenarios/{scenario['id']}/session-state", headers=user["headers"], json={"elapsed_time": 45})
    assert response.status_code == 200

    timing = client.get(url, headers=user["headers"]).json()["data"]
    assert timing["total_elapsed_time"] == 120.0
    assert timing["partial_elapsed_time"] == 45.0
    assert timing["remaining_time"] == 435.0
    assert timing["conversations_count"] == 1

    # Saving the conversation clears the in-flight session state
    _save(client, scenario, user, 45)
    timing = client.get(url, headers=user["headers"]).json()["data"]
    assert timing["partial_elapsed_time"] == 0.0
    assert timing["remaining_time"] == 435.0


def test_session_timer_restores_from_elapsed_time(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"], time_limit=10)
    _save(client, scenario, user, 120)
    client.put(f"/api/scenarios/{scenario['id']}/session-state", headers=user["headers"], json={"elapsed_time": 45})
    timing = client.get(f"/api/scenarios/{scenario['id']}/elapsed-time", headers=user["headers"]).json()["data"]

    # The partial time is counted once, matching the server's remaining time
    timer = SessionTimer(timing["time_limit"] * 60, clock=lambda: 0.0)
    assert timer.reconcile(timing["total_elapsed_time"], timing["partial_elapsed_time"]) == timing["remaining_time"]
    assert timer.remaining == 435.0


def test_session_state_rejects_negative_time(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"])
    response = client.put(f"/api/scenarios/{scenario['id']}/session-state", headers=user["headers"], json={"elapsed_time": -5})
    assert response.status_code == 422


def test_remaining_time_never_negative(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"], time_limit=1)
    _save(client, scenario, user, 90)

    timing = client.get(f"/api/scenarios/{scenario['id']}/elapsed-time", headers=user["headers"]).json()["data"]
    assert timing["remaining_time"] == 0.0


def test_reset_timer(client, admin_headers, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"], time_limit=1)
    _save(client, scenario, user, 90)

    # Only admins reset
    assert client.delete(f"/api/scenarios/{scenario['id']}/reset-timer", headers=user["headers"]).status_code == 403

    response = client.delete(f"/api/scenarios/{scenario['id']}/reset-timer", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["conversations_removed"] == 1

    timing = client.get(f"/api/scenarios/{scenario['id']}/elapsed-time", headers=user["headers"]).json()["data"]
    assert timing["remaining_time"] == 60.0
    assert timing["conversations_count"] == 0


def test_avatar_session(client, make_user, make_scenario, heygen):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"], interactive_avatar="Anna_public", avatar_language="en")

    response = client.post(f"/api/scenarios/{scenario['id']}/avatar-session", headers=user["headers"])
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token"] == "stream-token-for-hg-secret"
    assert data["avatar_name"] == "Anna_public"
    assert data["language"] == "en"
    assert data["knowledge_base"] == "Act as the following persona: You are a demanding customer buying a car."
    assert data["remaining_time"] == 1800.0


def test_avatar_session_refused_when_time_is_spent(client, make_user, make_scenario, heygen):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"], time_limit=1)
    _save(client, scenario, user, 60)

    response = client.post(f"/api/scenarios/{scenario['id']}/avatar-session", headers=user["headers"])
    assert response.status_code == 403
    assert response.json()["message"] == "No time remaining for this scenario"


def test_avatar_session_without_heygen_key(client, make_user, make_scenario):
    user = make_user()
    scenario = make_scenario(user_id_assigned=user["id"])
    response = client.post(f"/api/scenarios/{scenario['id']}/avatar-session", headers=user["headers"])
    assert response.status_code == 503
