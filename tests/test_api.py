from __future__ import annotations

import json

from tests.conftest import add_location, add_user, signed_headers


def _json_body(data) -> bytes:
    return json.dumps(data).encode()


async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_missing_signature_rejected(client):
    response = await client.get("/notifications", headers={"X-User-Id": "1"})
    assert response.status_code == 401


async def test_bad_signature_rejected(client, db):
    await add_user(db, 1)
    await add_user(db, 2)
    body = _json_body({"target_id": 2})
    headers = signed_headers(1, b"something else")

    response = await client.post("/people/like", content=body, headers=headers)

    assert response.status_code == 401


async def test_like_flow_end_to_end(client, db, queue):
    await add_user(db, 1)
    await add_user(db, 2)

    body = _json_body({"target_id": 2, "message": "hey"})
    first = await client.post("/people/like", content=body, headers=signed_headers(1, body))
    assert first.status_code == 200
    assert first.json() == {"is_match": False, "created": True, "match": None}

    body = _json_body({"target_id": 1})
    second = await client.post("/people/like", content=body, headers=signed_headers(2, body))
    assert second.status_code == 200
    data = second.json()
    assert data["is_match"] is True
    assert data["match"]["users"] == [1, 2]

    inbox = await client.get("/notifications", headers=signed_headers(1))
    kinds = [item["payload"]["kind"] for item in inbox.json()]
    assert kinds == ["match"]
    assert inbox.json()[0]["payload"]["partner"] == 2
    assert len(queue.ids) == 3


async def test_self_like_is_bad_request(client, db):
    await add_user(db, 1)
    body = _json_body({"target_id": 1})

    response = await client.post("/people/like", content=body, headers=signed_headers(1, body))

    assert response.status_code == 400


async def test_like_unknown_user_not_found(client, db):
    await add_user(db, 1)
    body = _json_body({"target_id": 42})

    response = await client.post("/people/like", content=body, headers=signed_headers(1, body))

    assert response.status_code == 404


async def test_mark_read_of_other_user_forbidden(client, db):
    await add_user(db, 1)
    await add_user(db, 2)
    body = _json_body({"target_id": 2})
    await client.post("/people/like", content=body, headers=signed_headers(1, body))

    inbox = await client.get("/notifications", headers=signed_headers(2))
    notification_id = inbox.json()[0]["id"]

    forbidden = await client.post(f"/notifications/{notification_id}/read", headers=signed_headers(1))
    assert forbidden.status_code == 403

    ok = await client.post(f"/notifications/{notification_id}/read", headers=signed_headers(2))
    assert ok.status_code == 200
    assert ok.json()["is_read"] is True

    unread = await client.get("/notifications", params={"unread_only": "true"}, headers=signed_headers(2))
    assert unread.json() == []


async def test_suggestion_decisions(client, db):
    await add_user(db, 1, interests=["museums"])
    location = await add_location(db, "Museum", "museums")

    listed = await client.get("/suggestions", headers=signed_headers(1))
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()["items"]] == [location.id]

    accepted = await client.post(f"/suggestions/{location.id}/accept", headers=signed_headers(1))
    assert accepted.status_code == 200
    assert accepted.json() == {"location_id": location.id, "status": "accepted", "notification_marked_read": None}

    rejected = await client.post(f"/suggestions/{location.id}/reject", headers=signed_headers(1))
    assert rejected.status_code == 409


async def test_suggestions_bad_page(client, db):
    await add_user(db, 1, interests=["museums"])

    response = await client.get("/suggestions", params={"page": 0}, headers=signed_headers(1))

    assert response.status_code == 400


async def test_nearby_locations(client, db):
    near = await add_location(db, "Near", "landmark", coordinates="0.01,0")
    await add_location(db, "Far", "landmark", coordinates="10,10")

    response = await client.get("/locations/nearby", params={"coordinates": "0,0", "radius_km": 5})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [near.id]
    assert response.json()[0]["distance_km"] > 0


async def test_nearby_rejects_bad_coordinates(client):
    response = await client.get("/locations/nearby", params={"coordinates": "north"})
    assert response.status_code == 400


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_favorites_endpoints(client, db):
    await add_user(db, 1)
    await add_user(db, 2, username="ann")
    location = await add_location(db, "Museum", "museums")

    body = _json_body({"location_id": location.id, "notes": "sunday"})
    created = await client.post("/favorites", content=body, headers=signed_headers(1, body))
    assert created.status_code == 201
    assert created.json()["location"]["id"] == location.id

    duplicate = await client.post("/favorites", content=body, headers=signed_headers(1, body))
    assert duplicate.status_code == 409

    body = _json_body({"location_id": location.id})
    await client.post("/favorites", content=body, headers=signed_headers(2, body))

    listed = await client.get("/favorites", headers=signed_headers(1))
    assert [item["notes"] for item in listed.json()] == ["sunday"]

    companions = await client.get(f"/people/companions/{location.id}", headers=signed_headers(1))
    assert [item["id"] for item in companions.json()["items"]] == [2]

    by_locations = await client.get("/people/search/by-locations", headers=signed_headers(1))
    assert by_locations.json()["items"] == [{"id": 2, "username": "ann", "shared_location_ids": [location.id]}]

    removed = await client.delete(f"/favorites/{location.id}", headers=signed_headers(1))
    assert removed.status_code == 200
    assert (await client.get("/favorites", headers=signed_headers(1))).json() == []


async def test_accept_reports_foreign_notification(client, db):
    await add_user(db, 1, interests=["museums"])
    await add_user(db, 2, interests=["museums"])
    location = await add_location(db, "Museum", "museums")

    suggested = await client.post(f"/suggestions/{location.id}", headers=signed_headers(2))
    notification_id = suggested.json()["id"]

    body = _json_body({"notification_id": notification_id})
    accepted = await client.post(f"/suggestions/{location.id}/accept", content=body, headers=signed_headers(1, body))

    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["notification_marked_read"] is False
