# tests/test_events.py

import json
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import auth_headers_for
from partnerhub.services import attribution as attribution_service
from partnerhub.services import events as events_service


async def test_feed_returns_own_events_after_cursor(client: AsyncClient, db_session, test_partner, auth_headers, make_partner):
    other = make_partner()
    await attribution_service.register_click(db_session, test_partner.id, "1.1.1.1", "pytest")
    await attribution_service.register_click(db_session, other.id, "1.1.1.1", "pytest")

    response = await client.get("/api/v1/events", headers=auth_headers)

    data = response.json()
    assert response.status_code == 200
    assert [(e["table_name"], e["partner_id"]) for e in data["items"]] == [("clicks", test_partner.id)]

    await attribution_service.register_click(db_session, test_partner.id, "2.2.2.2", "pytest")
    later = await client.get("/api/v1/events", params={"after_id": data["next_after_id"]}, headers=auth_headers)
    assert len(later.json()["items"]) == 1
    assert later.json()["next_after_id"] > data["next_after_id"]

    empty = await client.get("/api/v1/events", params={"after_id": later.json()["next_after_id"]}, headers=auth_headers)
    assert empty.json() == {"items": [], "next_after_id": later.json()["next_after_id"]}


async def test_feed_table_filter_and_admin_scope(client: AsyncClient, db_session, test_partner, admin_auth_headers, make_partner):
    await attribution_service.register_click(db_session, test_partner.id, "1.1.1.1", "pytest")
    await client.post("/api/v1/messages", json={"content": "Hi"}, headers=auth_headers_for(test_partner))

    messages_only = await client.get("/api/v1/events", params={"table": "messages"}, headers=auth_headers_for(test_partner))
    assert [e["table_name"] for e in messages_only.json()["items"]] == ["messages"]

    everything = await client.get("/api/v1/events", headers=admin_auth_headers)
    assert {e["table_name"] for e in everything.json()["items"]} == {"clicks", "messages"}


async def test_publish_failure_does_not_break_request(client: AsyncClient, db_session, test_partner, mock_redis):
    mock_redis.publish.side_effect = RedisConnectionError("redis is down")

    response = await client.post("/", json={"referralCode": "PARTNER1"})

    assert response.status_code == 200
    assert response.json()["success"] is True


async def test_subscribe_filters_by_partner_and_table(mock_redis):
    messages = [
        {"type": "subscribe", "data": 1},
        {"type": "message", "data": json.dumps({"id": 1, "table_name": "clicks", "partner_id": 2})},
        {"type": "message", "data": "not json"},
        {"type": "message", "data": json.dumps({"id": 2, "table_name": "clicks", "partner_id": 1})},
        {"type": "message", "data": json.dumps({"id": 3, "table_name": "messages", "partner_id": None})},
        {"type": "message", "data": json.dumps({"id": 4, "table_name": "clicks", "partner_id": None})},
    ]

    async def listen():
        for message in messages:
            yield message

    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    pubsub.listen = listen
    mock_redis.pubsub.return_value = pubsub

    received = [event["id"] async for event in events_service.subscribe(partner_id=1, table_name="clicks")]

    assert received == [2, 4]
    pubsub.subscribe.assert_awaited_once()
    pubsub.aclose.assert_awaited_once()
