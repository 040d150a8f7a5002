from simulai.core.mailer import SMTPConfig, welcome_email


def test_send_welcome_email(client, admin_headers, monkeypatch):
    sent = []

    async def fake_send_email(config, to_email, subject, html, text=""):
        sent.append({"config": config, "to": to_email, "subject": subject, "html": html})
        return "<1234@simulai.io>"

    monkeypatch.setattr("simulai.routes.endpoints.email.send_email", fake_send_email)
    response = client.post("/api/email/send", headers=admin_headers, json={
        "to": "new.hire@simulai.io",
        "name": "New Hire",
        "password": "Temp-Password-1",
    })
    assert response.status_code == 200
    assert response.json()["data"] == {"messageId": "<1234@simulai.io>"}

    mail = sent[0]
    assert mail["to"] == "new.hire@simulai.io"
    assert "Temp-Password-1" in mail["html"]
    # Falls back to the SMTP environment when no mail settings are stored
    assert mail["config"].host == "smtp.simulai.io"


def test_send_email_requires_manager(client, make_user):
    user = make_user()
    response = client.post("/api/email/send", headers=user["headers"], json={
        "to": "someone@simulai.io", "name": "Someone", "password": "x",
    })
    assert response.status_code == 403


def test_stored_mail_settings_win_over_environment():
    config = SMTPConfig.resolve({
        "mail_host": "mail.acme.io",
        "mail_port": 465,
        "mail_username": "acme",
        "mail_password": "secret",
        "mail_from": "noreply@acme.io",
    })
    assert config.host == "mail.acme.io"
    assert config.use_ssl is True
    assert config.from_name == "SimulAI"


def test_welcome_email_contains_login_link():
    subject, html = welcome_email("Ana", "ana@simulai.io", "pw")
    assert subject.startswith("Welcome to SimulAI")
    assert "/login" in html and "ana@simulai.io" in html
