import uuid

import pytest
from starlette.websockets import WebSocketDisconnect


def _h(token: str):
    return {"Authorization": f"Bearer {token}"}


def _item():
    return {
        "productType": "AVR",
        "size": "10kva",
        "serialNumber": f"RT-{uuid.uuid4().hex[:10]}",
        "date": "2025-04-01",
        "location": "Control Room",
        "issuedBy": "Stores",
    }


def test_rejects_missing_token(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/events"):
            pass
    assert exc.value.code == 4401


def test_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/events?token=garbage"):
            pass
    assert exc.value.code == 4401


def test_bearer_header_is_accepted(client, make_staff):
    user, token = make_staff()
    with client.websocket_connect("/ws/events", headers=_h(token)) as ws:
        hello = ws.receive_json()
        assert hello["event"] == "connected"
        assert hello["data"] == {"staffId": user["staffId"], "role": "staff"}


def test_mutations_are_pushed(client, make_staff):
    user, token = make_staff()
    h = _h(token)

    with client.websocket_connect(f"/ws/events?token={token}") as ws:
        assert ws.receive_json()["event"] == "connected"

        item = client.post("/api/inventory", json=_item(), headers=h).json()
        created = ws.receive_json()
        assert created["event"] == "inventory:created"
        assert created["data"] == item
        assert created["timestamp"]

        updated_item = client.put(f"/api/inventory/{item['id']}", json={"status": "Replaced"}, headers=h).json()
        updated = ws.receive_json()
        assert updated["event"] == "inventory:updated"
        assert updated["data"]["status"] == "Replaced"
        assert updated["data"] == updated_item

        client.delete(f"/api/inventory/{item['id']}", headers=h)
        deleted = ws.receive_json()
        assert deleted["event"] == "inventory:deleted"
        assert deleted["data"] == {"id": item["id"], "userId": user["id"]}

        # exactly one delete event: the next thing on the wire is the next mutation
        task = client.post("/api/tasks", json={"title": "After delete"}, headers=h).json()
        following = ws.receive_json()
        assert following["event"] == "task:created"
        assert following["data"]["id"] == task["id"]


def test_failed_mutations_publish_nothing(client, make_staff):
    _, token = make_staff()
    h = _h(token)
    payload = _item()
    client.post("/api/inventory", json=payload, headers=h)

    with client.websocket_connect(f"/ws/events?token={token}") as ws:
        ws.receive_json()

        assert client.post("/api/inventory", json=payload, headers=h).status_code == 409
        assert client.delete("/api/inventory/999999", headers=h).status_code == 404

        marker = client.post("/api/tasks", json={"title": "marker"}, headers=h).json()
        event = ws.receive_json()
        assert event["event"] == "task:created"
        assert event["data"]["id"] == marker["id"]


def test_no_replay_after_reconnect(client, make_staff):
    _, token = make_staff()
    h = _h(token)
    item = client.post("/api/inventory", json=_item(), headers=h).json()

    with client.websocket_connect(f"/ws/events?token={token}") as ws:
        ws.receive_json()

    # happens while nobody is listening
    client.delete(f"/api/inventory/{item['id']}", headers=h)

    with client.websocket_connect(f"/ws/events?token={token}") as ws:
        assert ws.receive_json()["event"] == "connected"

        fresh = client.post("/api/inventory", json=_item(), headers=h).json()
        event = ws.receive_json()
        assert event["event"] == "inventory:created"
        assert event["data"]["id"] == fresh["id"]

    # a re-fetch shows the state the missed event described
    listing = client.get("/api/inventory", headers=h).json()
    assert [i["id"] for i in listing["items"]] == [fresh["id"]]
