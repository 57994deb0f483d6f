from dial_a_service.app.core.db import get_connection

from .conftest import API, approve, fill_onboarding, onboard, user_id


def test_initial_state(client, provider):
    response = client.get(f"{API}/onboarding", headers=provider)
    assert response.status_code == 200
    state = response.json()
    assert state["current_step"] == 0
    assert state["is_first"] and not state["is_last"]
    assert [step["title"] for step in state["steps"]] == [
        "Basic Information",
        "Skills & Experience",
        "ID Verification",
    ]
    assert not any(step["complete"] for step in state["steps"])
    assert state["completed"] is False


def test_next_refuses_unfinished_step(client, provider):
    response = client.post(f"{API}/onboarding/next", headers=provider)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please enter your business name"
    assert client.get(f"{API}/onboarding", headers=provider).json()["current_step"] == 0


def test_navigation_is_persisted(client, provider):
    fill_onboarding(client, provider)
    assert client.post(f"{API}/onboarding/next", headers=provider).json()["current_step"] == 1
    assert client.post(f"{API}/onboarding/next", headers=provider).json()["current_step"] == 2
    assert client.get(f"{API}/onboarding", headers=provider).json()["is_last"] is True

    assert client.post(f"{API}/onboarding/back", headers=provider).json()["current_step"] == 1
    assert client.post(f"{API}/onboarding/goto", json={"step": 0}, headers=provider).json()["current_step"] == 0
    # Back on the first step and jumps out of range change nothing.
    assert client.post(f"{API}/onboarding/back", headers=provider).json()["current_step"] == 0
    assert client.post(f"{API}/onboarding/goto", json={"step": 9}, headers=provider).json()["current_step"] == 0


def test_next_on_last_step_completes_onboarding(client, provider):
    fill_onboarding(client, provider)
    client.post(f"{API}/onboarding/goto", json={"step": 2}, headers=provider)
    response = client.post(f"{API}/onboarding/next", headers=provider)
    assert response.status_code == 200
    state = response.json()
    assert state["completed"] is True
    assert state["redirect_to"] == "/provider/pending"


def test_complete_queues_provider_for_review(client, provider):
    state = onboard(client, provider)
    assert state["completed"] is True
    assert state["redirect_to"] == "/provider/pending"

    verification = client.get(f"{API}/providers/me/verification", headers=provider).json()
    assert verification["status"] == "pending"
    assert verification["verification_requested_at"] is not None
    assert client.get(f"{API}/auth/me", headers=provider).json()["redirect_to"] == "/provider/pending"


def test_complete_moves_to_first_unfinished_step(client, provider):
    client.put(
        f"{API}/providers/me/basic-info",
        json={"years_experience": 1, "business_name": "Fix It", "business_email": "a@b.c"},
        headers=provider,
    )
    response = client.post(f"{API}/onboarding/complete", headers=provider)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please select at least one skill"
    assert client.get(f"{API}/onboarding", headers=provider).json()["current_step"] == 1


def test_verified_provider_completing_goes_to_dashboard(client, provider, admin):
    onboard(client, provider)
    approve(client, admin, provider)
    assert client.get(f"{API}/auth/me", headers=provider).json()["redirect_to"] == "/provider/dashboard"
    response = client.post(f"{API}/onboarding/complete", headers=provider)
    assert response.json()["redirect_to"] == "/provider/dashboard"
    # An approved provider is not put back into the review queue.
    assert client.get(f"{API}/providers/me/verification", headers=provider).json()["status"] == "approved"


def test_rejected_provider_is_requeued_on_completion(client, provider, admin):
    onboard(client, provider)
    provider_id = user_id(client, provider)
    client.post(
        f"{API}/admin/providers/{provider_id}/verification",
        json={"status": "rejected", "reason": "Blurry ID"},
        headers=admin,
    )
    assert client.get(f"{API}/providers/me/verification", headers=provider).json()["status"] == "rejected"
    onboard(client, provider)
    assert client.get(f"{API}/providers/me/verification", headers=provider).json()["status"] == "pending"


def test_completion_without_provider_row_is_404(client, provider):
    provider_id = user_id(client, provider)
    fill_onboarding(client, provider)
    conn = get_connection()
    try:
        conn.execute("DELETE FROM providers WHERE id = ?", (provider_id,))
        conn.commit()
    finally:
        conn.close()
    assert client.post(f"{API}/onboarding/complete", headers=provider).status_code == 404
