from datetime import date

import pytest

from dial_a_service.app.services.calendar_service import week_start

from .conftest import API


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2026, 3, 1), date(2026, 3, 1)),
        (date(2026, 3, 4), date(2026, 3, 1)),
        (date(2026, 3, 7), date(2026, 3, 1)),
        (date(2026, 3, 8), date(2026, 3, 8)),
    ],
)
def test_weeks_start_on_sunday(day, expected):
    assert week_start(day) == expected


def schedule(client, provider, title, start, end):
    response = client.post(
        f"{API}/jobs/schedule",
        json={"title": title, "start_time": start, "end_time": end},
        headers=provider,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_week_view(client, provider):
    sunday = schedule(client, provider, "Sunday job", "2026-03-01T08:00:00", "2026-03-01T09:00:00")
    wednesday_late = schedule(client, provider, "Late", "2026-03-04T15:00:00", "2026-03-04T16:00:00")
    wednesday_early = schedule(client, provider, "Early", "2026-03-04T08:00:00", "2026-03-04T09:00:00")
    saturday = schedule(client, provider, "Saturday evening", "2026-03-07T18:00:00", "2026-03-07T20:00:00")
    schedule(client, provider, "Next week", "2026-03-08T08:00:00", "2026-03-08T09:00:00")
    schedule(client, provider, "Last week", "2026-02-28T23:00:00", "2026-02-28T23:30:00")
    client.post(
        f"{API}/slots",
        json={"date": "2026-03-05", "start_time": "09:00", "end_time": "10:00"},
        headers=provider,
    )

    response = client.get(f"{API}/providers/me/calendar", params={"date": "2026-03-04"}, headers=provider)
    assert response.status_code == 200
    week = response.json()
    assert week["week_start"] == "2026-03-01"
    assert week["week_end"] == "2026-03-07"
    assert week["previous_week"] == "2026-02-22"
    assert week["next_week"] == "2026-03-08"
    assert [day["date"] for day in week["days"]] == [f"2026-03-0{n}" for n in range(1, 8)]

    jobs_by_day = {day["date"]: [job["id"] for job in day["jobs"]] for day in week["days"]}
    assert jobs_by_day == {
        "2026-03-01": [sunday["id"]],
        "2026-03-02": [],
        "2026-03-03": [],
        "2026-03-04": [wednesday_early["id"], wednesday_late["id"]],
        "2026-03-05": [],
        "2026-03-06": [],
        "2026-03-07": [saturday["id"]],
    }
    assert [day["date"] for day in week["days"] if day["has_time_slots"]] == ["2026-03-05"]


def test_calendar_only_shows_own_jobs(client, provider, make_user):
    other = make_user("other-provider@example.com", "provider")
    schedule(client, other, "Theirs", "2026-03-04T08:00:00", "2026-03-04T09:00:00")
    week = client.get(f"{API}/providers/me/calendar", params={"date": "2026-03-04"}, headers=provider).json()
    assert all(day["jobs"] == [] for day in week["days"])


def test_calendar_defaults_to_current_week(client, provider):
    week = client.get(f"{API}/providers/me/calendar", headers=provider).json()
    assert week["week_start"] == week_start(date.today()).isoformat()
    assert len(week["days"]) == 7
