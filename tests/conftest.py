import re

import pytest
from fastapi.testclient import TestClient

from dial_a_service.app.core.config import settings
from dial_a_service.app.core.db import get_connection, init_db
from dial_a_service.app.main import app
from dial_a_service.app.services.email_service import EmailService


API = "/api/v1"
ADMIN_EMAIL = "admin@example.com"
JPEG = b"\xff\xd8\xff\xe0" + b"0" * 64


@pytest.fixture
def app_settings(tmp_path, monkeypatch):
    """Point the database and the file storage at a per-test directory."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "media_root", str(tmp_path / "media"))
    monkeypatch.setattr(settings, "admin_emails", [ADMIN_EMAIL])
    monkeypatch.setattr(settings, "sendgrid_api_key", "")
    monkeypatch.setattr(settings, "public_base_url", "http://testserver")
    init_db()
    return settings


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of calling SendGrid."""
    sent = []

    async def fake_send(cls, to, subject, html_content=None, template_id=None, template_data=None):
        sent.append(
            {
                "to": to,
                "subject": subject,
                "html": html_content,
                "template_id": template_id,
                "template_data": template_data,
            }
        )
        return True

    monkeypatch.setattr(EmailService, "send", classmethod(fake_send))
    return sent


@pytest.fixture
def client(app_settings, sent_emails):
    with TestClient(app) as test_client:
        yield test_client


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def magic_token(email):
    match = re.search(r"token=([A-Za-z0-9_\-]+)", email["html"])
    assert match, email["html"]
    return match.group(1)


def user_id(client, headers):
    response = client.get(f"{API}/auth/me", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["user"]["id"]


def disable_user(email):
    conn = get_connection()
    try:
        conn.execute("UPDATE users SET disabled = 1 WHERE email = ?", (email,))
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def register(client):
    """Register an account and return its auth headers."""

    def _register(email, password="secret123", full_name=None):
        response = client.post(
            f"{API}/auth/register",
            json={"email": email, "password": password, "full_name": full_name},
        )
        assert response.status_code == 201, response.text
        response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return bearer(response.json()["access_token"])

    return _register


@pytest.fixture
def make_user(client, register):
    """Register an account and complete its profile with the given role."""

    def _make_user(email, role, full_name="Test User", phone="0977123456"):
        headers = register(email)
        response = client.put(
            f"{API}/account/profile",
            json={"full_name": full_name, "phone_number": phone, "city": "Lusaka", "role": role},
            headers=headers,
        )
        assert response.status_code == 200, response.text
        return headers

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user("customer@example.com", "customer", full_name="Chanda Customer")


@pytest.fixture
def provider(make_user):
    return make_user("provider@example.com", "provider", full_name="Peter Provider")


@pytest.fixture
def admin(register):
    return register(ADMIN_EMAIL)


def fill_onboarding(client, headers, skills=("Plumbing",)):
    response = client.put(
        f"{API}/providers/me/basic-info",
        json={"years_experience": 4, "business_name": "Fix It Ltd", "business_email": "office@fixit.example"},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    response = client.put(f"{API}/providers/me/skills", json={"skills": list(skills)}, headers=headers)
    assert response.status_code == 200, response.text
    response = client.post(
        f"{API}/providers/me/id-document",
        files={"file": ("id.jpg", JPEG, "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 201, response.text


def onboard(client, headers, skills=("Plumbing",)):
    """Fill in every onboarding step and complete the wizard."""
    fill_onboarding(client, headers, skills)
    response = client.post(f"{API}/onboarding/complete", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def approve(client, admin_headers, provider_headers):
    provider_id = user_id(client, provider_headers)
    response = client.post(
        f"{API}/admin/providers/{provider_id}/verification",
        json={"status": "approved"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return provider_id


@pytest.fixture
def verified_provider(client, provider, admin):
    onboard(client, provider)
    approve(client, admin, provider)
    return provider
