def _create_company(client, headers, name="Acme", departments=("Sales", "Support")):
    response = client.post("/api/companies", headers=headers, json={"name": name, "departments": list(departments)})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_company_with_departments(client, admin_headers):
    company = _create_company(client, admin_headers)
    assert company["name"] == "Acme"
    assert [department["name"] for department in company["departments"]] == ["Sales", "Support"]
    assert all(department["company_id"] == company["id"] for department in company["departments"])


def test_only_admin_creates_companies(client, make_user):
    manager = make_user(role="company")
    response = client.post("/api/companies", headers=manager["headers"], json={"name": "Rogue"})
    assert response.status_code == 403


def test_company_manager_lists_only_own_company(client, admin_headers, make_user):
    acme = _create_company(client, admin_headers)
    _create_company(client, admin_headers, name="Globex", departments=())
    manager = make_user(role="company", company_id=acme["id"])

    response = client.get("/api/companies", headers=manager["headers"])
    assert response.status_code == 200
    assert [company["id"] for company in response.json()["data"]] == [acme["id"]]


def test_update_company_departments(client, admin_headers, make_user):
    company = _create_company(client, admin_headers)
    sales, support = company["departments"]
    user = make_user(company_id=company["id"], department_ids=[sales["id"], support["id"]])

    response = client.put(f"/api/companies/{company['id']}", headers=admin_headers, json={
        "name": "Acme Corp",
        "departments": [{"id": sales["id"], "name": "Sales EMEA"}, {"name": "Marketing"}],
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Acme Corp"
    assert [department["name"] for department in data["departments"]] == ["Sales EMEA", "Marketing"]

    # The removed department no longer appears on its users
    refreshed = client.get(f"/api/users/{user['id']}", headers=admin_headers).json()["data"]
    assert refreshed["department_ids"] == [sales["id"]]


def test_delete_company_cascades_to_departments_and_users(client, admin_headers, make_user):
    company = _create_company(client, admin_headers)
    department_ids = [department["id"] for department in company["departments"]]
    user = make_user(company_id=company["id"], department_ids=department_ids)

    response = client.delete(f"/api/companies/{company['id']}", headers=admin_headers)
    assert response.status_code == 200

    assert client.get(f"/api/companies/{company['id']}", headers=admin_headers).status_code == 404
    refreshed = client.get(f"/api/users/{user['id']}", headers=admin_headers).json()["data"]
    assert refreshed["company_id"] is None
    assert refreshed["department_ids"] == []

    # Department ids are gone, so assigning them again fails
    response = client.put(f"/api/users/{user['id']}", headers=admin_headers, json={"department_ids": department_ids})
    assert response.status_code == 400


def test_upload_logo_rejects_non_images(client, admin_headers):
    company = _create_company(client, admin_headers)
    response = client.put(
        f"/api/companies/{company['id']}/logo",
        headers=admin_headers,
        files={"file": ("logo.txt", b"not an image", "text/plain")},
    )
    assert response.status_code == 400


def test_upload_logo(client, admin_headers, monkeypatch):
    company = _create_company(client, admin_headers)

    class FakeStorage:
        async def upload(self, content, filename, content_type, folder=""):
            return f"https://bucket.simulai.io/{folder}/{filename}"

    async def fake_get_storage(db):
        return FakeStorage()

    monkeypatch.setattr("simulai.routes.endpoints.companies.get_storage", fake_get_storage)
    response = client.put(
        f"/api/companies/{company['id']}/logo",
        headers=admin_headers,
        files={"file": ("logo.png", b"\x89PNG\r\n", "image/png")},
    )
    assert response.status_code == 200
    assert response.json()["data"]["logo"] == "https://bucket.simulai.io/logos/logo.png"
