import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from dial_a_service.app.core.realtime import RealtimeHub, RowFilter

from .conftest import API, user_id


def test_row_filter_parse_and_match():
    row_filter = RowFilter.parse("provider_id=eq.7")
    assert row_filter == RowFilter(column="provider_id", value="7")
    assert row_filter.matches({"provider_id": 7})
    assert not row_filter.matches({"provider_id": 8})
    assert not row_filter.matches({"provider_id": None})
    assert not row_filter.matches(None)
    assert RowFilter.parse(None) is None
    assert RowFilter.parse("") is None


@pytest.mark.parametrize("expression", ["provider_id", "provider_id=7", "=eq.7", "provider_id=eq.", "id=gt.3"])
def test_row_filter_rejects_unsupported_expressions(expression):
    with pytest.raises(ValueError):
        RowFilter.parse(expression)


def test_publish_delivers_to_matching_subscribers_only():
    async def scenario():
        hub = RealtimeHub()
        mine = hub.subscribe("jobs", "provider_id=eq.7")
        other = hub.subscribe("jobs", "provider_id=eq.8")
        everything = hub.subscribe("jobs")
        providers = hub.subscribe("providers")
        delivered = hub.publish("jobs", "UPDATE", new={"id": 1, "provider_id": 7, "status": "accepted"})
        change = await asyncio.wait_for(mine.get(), 1)
        await asyncio.wait_for(everything.get(), 1)
        return delivered, change, other.queue.qsize(), providers.queue.qsize()

    delivered, change, other_size, providers_size = asyncio.run(scenario())
    assert delivered == 2
    assert change["type"] == "change"
    assert change["table"] == "jobs"
    assert change["event"] == "UPDATE"
    assert change["new"]["status"] == "accepted"
    assert other_size == 0
    assert providers_size == 0


def test_delete_events_match_on_the_old_row():
    async def scenario():
        hub = RealtimeHub()
        subscription = hub.subscribe("time_slots", "provider_id=eq.3")
        delivered = hub.publish("time_slots", "DELETE", old={"id": 5, "provider_id": 3})
        change = await asyncio.wait_for(subscription.get(), 1)
        return delivered, change

    delivered, change = asyncio.run(scenario())
    assert delivered == 1
    assert change["new"] is None
    assert change["old"]["id"] == 5


def test_unsubscribe_and_unknown_events():
    async def scenario():
        hub = RealtimeHub()
        subscription = hub.subscribe("jobs")
        assert hub.subscriber_count == 1
        hub.unsubscribe(subscription)
        assert hub.subscriber_count == 0
        return hub.publish("jobs", "INSERT", new={"id": 1})

    assert asyncio.run(scenario()) == 0
    with pytest.raises(ValueError):
        RealtimeHub().publish("jobs", "TRUNCATE")


def test_websocket_rejects_bad_tokens_and_foreign_filters(client, customer):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{API}/realtime?token=bad&table=jobs"):
            pass
    assert exc.value.code == 1008

    token = customer["Authorization"].split()[1]
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{API}/realtime?token={token}&table=jobs"):
            pass
    assert exc.value.code == 1008

    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{API}/realtime?token={token}&table=jobs&filter=customer_id=eq.99999"):
            pass
    assert exc.value.code == 1008


@pytest.mark.parametrize(
    "table, column",
    [("jobs", "id"), ("jobs", "price"), ("providers", "verified"), ("time_slots", "id"), ("recurring_slots", "id")],
)
def test_filter_must_use_an_ownership_column(client, customer, table, column):
    own_id = user_id(client, customer)
    token = customer["Authorization"].split()[1]
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect(f"{API}/realtime?token={token}&table={table}&filter={column}=eq.{own_id}"):
            pass
    assert exc.value.code == 1008


def test_customer_sees_only_own_job_changes(client, customer, make_user):
    other = make_user("other@example.com", "customer")
    other_id = user_id(client, other)
    token = other["Authorization"].split()[1]
    url = f"{API}/realtime?token={token}&table=jobs&filter=customer_id=eq.{other_id}"
    with client.websocket_connect(url) as websocket:
        assert websocket.receive_json()["type"] == "subscribed"
        client.post(f"{API}/jobs", json={"category": "Cleaning", "description": "Not yours"}, headers=customer)
        response = client.post(f"{API}/jobs", json={"category": "Cleaning", "description": "Yours"}, headers=other)
        change = websocket.receive_json()
    assert change["new"]["id"] == response.json()["id"]
    assert change["new"]["customer_id"] == other_id


def test_publish_drops_subscribers_on_closed_loops():
    hub = RealtimeHub()

    async def subscribe():
        return hub.subscribe("jobs")

    asyncio.run(subscribe())
    assert hub.subscriber_count == 1
    assert hub.publish("jobs", "INSERT", new={"id": 1}) == 0
    assert hub.subscriber_count == 0


def test_admin_receives_job_inserts(client, admin, customer):
    token = admin["Authorization"].split()[1]
    with client.websocket_connect(f"{API}/realtime?token={token}&table=jobs") as websocket:
        assert websocket.receive_json()["type"] == "subscribed"
        response = client.post(
            f"{API}/jobs",
            json={"category": "Cleaning", "description": "Deep clean the flat"},
            headers=customer,
        )
        assert response.status_code == 201
        change = websocket.receive_json()
    assert change["event"] == "INSERT"
    assert change["new"]["id"] == response.json()["id"]


def test_provider_receives_changes_to_own_jobs(client, verified_provider):
    provider_id = user_id(client, verified_provider)
    token = verified_provider["Authorization"].split()[1]
    url = f"{API}/realtime?token={token}&table=jobs&filter=provider_id=eq.{provider_id}"
    with client.websocket_connect(url) as websocket:
        assert websocket.receive_json()["type"] == "subscribed"
        response = client.post(
            f"{API}/jobs/schedule",
            json={
                "title": "Geyser repair",
                "start_time": "2024-03-14T09:00:00",
                "end_time": "2024-03-14T11:00:00",
                "price": 250,
            },
            headers=verified_provider,
        )
        assert response.status_code == 201, response.text
        change = websocket.receive_json()
    assert change["new"]["provider_id"] == provider_id
    assert change["new"]["status"] == "accepted"


def test_closed_socket_leaves_the_hub(client, admin):
    from dial_a_service.app.core.realtime import hub

    before = hub.subscriber_count
    token = admin["Authorization"].split()[1]
    with client.websocket_connect(f"{API}/realtime?token={token}&table=providers") as websocket:
        assert websocket.receive_json()["type"] == "subscribed"
        assert hub.subscriber_count == before + 1
    assert hub.subscriber_count == before
