"""
Notification Sink Tests
=======================
"""
from types import SimpleNamespace

import pytest
import requests
from sqlmodel import select

from app.db.models import Notification, NotificationType
from app.services import notifications
from app.services.notifications import (
    DatabaseNotificationSink,
    FanOutNotificationSink,
    WebhookNotificationSink,
    build_notification_sink,
)
from app.tests.stubs import RecordingSink


class FakeResponse:

    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


def test_database_sink_stores_unlock(db_sink, session):
    db_sink.notify_chapter_unlocked(7, "Chapter 1: The Friendly Alien")

    row = session.exec(select(Notification)).one()
    assert row.user_id == 7
    assert row.type == NotificationType.STORY_UNLOCK
    assert row.title == "New Story Unlocked!"
    assert row.message == 'A new chapter "Chapter 1: The Friendly Alien" is ready to read!'
    assert row.data == {"chapterTitle": "Chapter 1: The Friendly Alien"}


def test_webhook_posts_json(monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json, timeout))
        return FakeResponse()

    monkeypatch.setattr(notifications.requests, "post", fake_post)

    WebhookNotificationSink("https://push.example/hooks", timeout=3).notify_chapter_unlocked(7, "Chapter 2: Moon Dust")

    url, payload, timeout = calls[0]
    assert url == "https://push.example/hooks"
    assert timeout == 3
    assert payload["type"] == "story_unlock"
    assert payload["data"] == {"chapterTitle": "Chapter 2: Moon Dust"}


def test_webhook_http_error_raises(monkeypatch):
    monkeypatch.setattr(notifications.requests, "post", lambda url, json, timeout: FakeResponse(502))

    with pytest.raises(requests.HTTPError):
        WebhookNotificationSink("https://push.example/hooks").notify_chapter_unlocked(7, "Chapter 1: Stars")


def test_fan_out_continues_past_failures():
    healthy = RecordingSink()
    sink = FanOutNotificationSink([RecordingSink(fail=True), healthy])

    sink.notify_chapter_unlocked(7, "Chapter 1: Stars")

    assert healthy.events == [(7, "Chapter 1: Stars")]


def test_build_sink_from_settings(db_sink):
    engine = db_sink.engine

    assert isinstance(build_notification_sink(engine, SimpleNamespace(NOTIFICATION_WEBHOOK_URL=None)), DatabaseNotificationSink)

    fan_out = build_notification_sink(engine, SimpleNamespace(NOTIFICATION_WEBHOOK_URL="https://push.example/hooks"))
    assert isinstance(fan_out, FanOutNotificationSink)
    assert [type(s) for s in fan_out.sinks] == [DatabaseNotificationSink, WebhookNotificationSink]
