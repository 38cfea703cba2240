from __future__ import annotations

import json

import httpx
import pytest

from core.security import sign_body, verify_body_signature
from models.notification import Notification
from services.notifications import MatchPayload
from services.webhooks import SIGNATURE_HEADER, WebhookConfig, WebhookConfigStore, WebhookDispatcher
from tests.conftest import add_user

SECRET = "hook-secret"
URL = "https://hooks.example.com/notify"


class Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
async def notification(db, notifications):
    await add_user(db, 1)
    return await notifications.create(1, MatchPayload(match_id=5, partner=2))


def _dispatcher(session_factory, handler, sleeps, store=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = store or WebhookConfigStore(default=WebhookConfig(URL, SECRET))
    return WebhookDispatcher(
        session_factory,
        store,
        client,
        timeout=5.0,
        max_attempts=5,
        backoff_base=1.0,
        backoff_factor=2.0,
        sleep=sleeps,
    )


async def _stored(session_factory, notification_id):
    async with session_factory() as session:
        return await session.get(Notification, notification_id)


def test_signature_round_trip():
    body = b'{"a":1}'
    signature = sign_body(body, SECRET)
    assert verify_body_signature(body, SECRET, signature)
    assert not verify_body_signature(body + b" ", SECRET, signature)
    assert not verify_body_signature(body, SECRET, None)


async def test_delivers_signed_body(session_factory, notification):
    received: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(request)
        return httpx.Response(204)

    sleeps = Sleeps()
    outcome = await _dispatcher(session_factory, handler, sleeps).deliver(notification.id)

    assert outcome == "delivered"
    assert sleeps.delays == []
    request = received[0]
    assert str(request.url) == URL
    assert verify_body_signature(request.content, SECRET, request.headers[SIGNATURE_HEADER])

    body = json.loads(request.content)
    assert body["notificationId"] == notification.id
    assert body["type"] == "match"
    assert body["recipient"] == 1
    assert body["payload"] == {"match_id": 5, "partner": 2}
    assert body["timestamp"].endswith("+00:00")

    stored = await _stored(session_factory, notification.id)
    assert stored.delivery_status == "delivered"
    assert stored.delivery_attempts == 1


async def test_failing_endpoint_retried_with_backoff(session_factory, notification):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(500)

    sleeps = Sleeps()
    outcome = await _dispatcher(session_factory, handler, sleeps).deliver(notification.id)

    assert outcome == "failed"
    assert calls == 5
    assert sleeps.delays == [1.0, 2.0, 4.0, 8.0]

    stored = await _stored(session_factory, notification.id)
    assert stored.delivery_status == "failed"
    assert stored.delivery_attempts == 5
    assert stored.is_read is False


async def test_timeout_then_success(session_factory, notification):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200)

    sleeps = Sleeps()
    outcome = await _dispatcher(session_factory, handler, sleeps).deliver(notification.id)

    assert outcome == "delivered"
    assert sleeps.delays == [1.0, 2.0]
    stored = await _stored(session_factory, notification.id)
    assert stored.delivery_attempts == 3


async def test_transport_error_is_retried(session_factory, notification):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    sleeps = Sleeps()
    outcome = await _dispatcher(session_factory, handler, sleeps).deliver(notification.id)

    assert outcome == "failed"
    assert len(sleeps.delays) == 4


async def test_no_webhook_configured_skips(session_factory, notification):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    outcome = await _dispatcher(session_factory, handler, Sleeps(), store=WebhookConfigStore()).deliver(
        notification.id
    )

    assert outcome == "skipped"
    stored = await _stored(session_factory, notification.id)
    assert stored.delivery_status == "skipped"


async def test_per_user_config_overrides_default(session_factory, notification):
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        assert verify_body_signature(request.content, "user-secret", request.headers[SIGNATURE_HEADER])
        return httpx.Response(200)

    store = WebhookConfigStore(
        default=WebhookConfig(URL, SECRET),
        per_user={1: WebhookConfig("https://user.example.com/hook", "user-secret")},
    )
    await _dispatcher(session_factory, handler, Sleeps(), store=store).deliver(notification.id)

    assert urls == ["https://user.example.com/hook"]


async def test_missing_notification(session_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    outcome = await _dispatcher(session_factory, handler, Sleeps()).deliver(999)

    assert outcome == "missing"


def test_backoff_delay():
    dispatcher = WebhookDispatcher(
        None, WebhookConfigStore(), None, backoff_base=1.0, backoff_factor=2.0  # type: ignore[arg-type]
    )
    assert [dispatcher.backoff_delay(n) for n in range(1, 5)] == [1.0, 2.0, 4.0, 8.0]


async def test_already_delivered_is_not_resent(session_factory, notification):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200)

    dispatcher = _dispatcher(session_factory, handler, Sleeps())
    first = await dispatcher.deliver(notification.id)
    second = await dispatcher.deliver(notification.id)

    assert (first, second) == ("delivered", "duplicate")
    assert calls == 1
    stored = await _stored(session_factory, notification.id)
    assert stored.delivery_attempts == 1
