from .conftest import API


def add_slot(client, provider, date="2026-03-04", start="09:00", end="10:00", **extra):
    response = client.post(
        f"{API}/slots",
        json={"date": date, "start_time": start, "end_time": end, **extra},
        headers=provider,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_list_day(client, provider):
    late = add_slot(client, provider, start="14:00", end="15:00", notes="  ")
    early = add_slot(client, provider, start="09:00", end="09:30", status="reserved", notes="Site visit")
    second_early = add_slot(client, provider, start="09:30", end="10:00")
    add_slot(client, provider, date="2026-03-05")

    assert early["start_time"] == "2026-03-04 09:00"
    assert early["end_time"] == "2026-03-04 09:30"
    assert late["notes"] is None
    assert late["status"] == "available"

    response = client.get(f"{API}/slots", params={"date": "2026-03-04"}, headers=provider)
    assert response.status_code == 200
    day = response.json()
    assert day["date"] == "2026-03-04"
    assert [slot["id"] for slot in day["slots"]] == [early["id"], second_early["id"], late["id"]]
    assert list(day["by_hour"]) == ["09", "14"]
    assert [slot["id"] for slot in day["by_hour"]["09"]] == [early["id"], second_early["id"]]


def test_slot_validation(client, provider):
    bad = [
        {"date": "2026-03-04", "start_time": "10:00", "end_time": "09:00"},
        {"date": "2026-03-04", "start_time": "10:00", "end_time": "10:00"},
        {"date": "2026-03-04", "start_time": "9am", "end_time": "10:00"},
        {"date": "2026-03-04", "start_time": "24:00", "end_time": "10:00"},
        {"date": "not-a-date", "start_time": "09:00", "end_time": "10:00"},
        {"date": "2026-03-04", "start_time": "09:00", "end_time": "10:00", "status": "busy"},
    ]
    for payload in bad:
        assert client.post(f"{API}/slots", json=payload, headers=provider).status_code == 422, payload

    response = client.post(
        f"{API}/slots", json={"date": "2026-03-04", "start_time": "10:00", "end_time": "09:00"}, headers=provider
    )
    assert "End time must be after start time" in response.text


def test_update_and_delete_slot(client, provider, admin):
    slot = add_slot(client, provider, notes="Morning")

    response = client.patch(f"{API}/slots/{slot['id']}", json={"status": "unavailable"}, headers=provider)
    assert response.status_code == 200
    assert response.json()["status"] == "unavailable"
    assert response.json()["notes"] == "Morning"

    response = client.patch(f"{API}/slots/{slot['id']}", json={"notes": ""}, headers=provider)
    assert response.json()["notes"] is None

    response = client.delete(f"{API}/slots/{slot['id']}", headers=provider)
    assert response.status_code == 204
    assert client.get(f"{API}/slots", params={"date": "2026-03-04"}, headers=provider).json()["slots"] == []
    assert client.delete(f"{API}/slots/{slot['id']}", headers=provider).status_code == 404

    logs = client.get(f"{API}/admin/audit", params={"object_type": "time_slot"}, headers=admin).json()
    assert logs[0]["action"] == "delete"
    assert logs[0]["details"] == {"start_time": "2026-03-04 09:00", "end_time": "2026-03-04 10:00"}


def test_slots_are_private(client, provider, make_user):
    slot = add_slot(client, provider)
    other = make_user("other-provider@example.com", "provider")

    assert client.get(f"{API}/slots", params={"date": "2026-03-04"}, headers=other).json()["slots"] == []
    response = client.patch(f"{API}/slots/{slot['id']}", json={"status": "reserved"}, headers=other)
    assert response.status_code == 403
    assert response.json()["detail"] == "You can only change your own time slots"
    assert client.delete(f"{API}/slots/{slot['id']}", headers=other).status_code == 403


def test_recurring_slot_defaults(client, provider):
    response = client.post(f"{API}/recurring-slots", json={}, headers=provider)
    assert response.status_code == 201
    slot = response.json()
    assert slot["start_time"] == "09:00"
    assert slot["end_time"] == "17:00"
    assert slot["days_of_week"] == [1, 2, 3, 4, 5]
    assert slot["status"] == "available"


def test_recurring_slot_lifecycle(client, provider):
    evening = client.post(
        f"{API}/recurring-slots",
        json={"start_time": "18:00", "end_time": "20:00", "days_of_week": [6, 0]},
        headers=provider,
    ).json()
    morning = client.post(f"{API}/recurring-slots", json={"start_time": "07:00", "end_time": "08:00"}, headers=provider).json()
    assert evening["days_of_week"] == [0, 6]

    listed = client.get(f"{API}/recurring-slots", headers=provider).json()
    assert [slot["id"] for slot in listed] == [morning["id"], evening["id"]]

    response = client.patch(
        f"{API}/recurring-slots/{evening['id']}", json={"days_of_week": [3], "notes": "Weekday only"}, headers=provider
    )
    assert response.status_code == 200
    assert response.json()["days_of_week"] == [3]
    assert response.json()["notes"] == "Weekday only"
    assert response.json()["start_time"] == "18:00"

    response = client.patch(f"{API}/recurring-slots/{evening['id']}", json={"end_time": "17:00"}, headers=provider)
    assert response.status_code == 400
    assert response.json()["detail"] == "End time must be after start time"

    response = client.patch(f"{API}/recurring-slots/{evening['id']}", json={"start_time": None}, headers=provider)
    assert response.status_code == 400

    assert client.delete(f"{API}/recurring-slots/{evening['id']}", headers=provider).status_code == 204
    assert [slot["id"] for slot in client.get(f"{API}/recurring-slots", headers=provider).json()] == [morning["id"]]
    assert client.patch(f"{API}/recurring-slots/{evening['id']}", json={}, headers=provider).status_code == 404


def test_recurring_slot_validation(client, provider, make_user):
    for payload in ({"days_of_week": []}, {"days_of_week": [1, 1]}, {"days_of_week": [7]}, {"start_time": "17:00"}):
        assert client.post(f"{API}/recurring-slots", json=payload, headers=provider).status_code == 422, payload

    slot = client.post(f"{API}/recurring-slots", json={}, headers=provider).json()
    other = make_user("other-provider@example.com", "provider")
    response = client.patch(f"{API}/recurring-slots/{slot['id']}", json={"notes": "mine"}, headers=other)
    assert response.status_code == 403
    assert client.delete(f"{API}/recurring-slots/{slot['id']}", headers=other).status_code == 403


def test_customers_have_no_slots(client, customer):
    assert client.get(f"{API}/slots", params={"date": "2026-03-04"}, headers=customer).status_code == 403
    assert client.get(f"{API}/recurring-slots", headers=customer).status_code == 403


def test_null_status_is_rejected(client, provider):
    slot = add_slot(client, provider, status="reserved")
    response = client.patch(f"{API}/slots/{slot['id']}", json={"status": None}, headers=provider)
    assert response.status_code == 400
    assert response.json()["detail"] == "status cannot be empty"

    # Clearing the notes with null is fine and leaves the status alone.
    response = client.patch(f"{API}/slots/{slot['id']}", json={"notes": None}, headers=provider)
    assert response.status_code == 200
    assert response.json()["status"] == "reserved"
