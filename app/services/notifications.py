"""
Notification sinks for "new chapter unlocked" events.

Delivery is fire-and-forget from the engine's point of view: the engine
catches and logs anything a sink raises.
"""
from typing import List, Optional, Protocol

import requests
from sqlmodel import Session

from app.core.config import Settings, settings as default_settings
from app.core.logger import get_logger
from app.db.models import Notification, NotificationType

logger = get_logger("notifications")

UNLOCK_TITLE = "New Story Unlocked!"


def unlock_message(chapter_title: str) -> str:
    return f'A new chapter "{chapter_title}" is ready to read!'


class NotificationSink(Protocol):

    def notify_chapter_unlocked(self, child_id: int, title: str) -> None: ...


class DatabaseNotificationSink:
    """Stores a story_unlock notification row for the child's inbox."""

    def __init__(self, engine):
        self.engine = engine

    def notify_chapter_unlocked(self, child_id: int, title: str) -> None:
        with Session(self.engine) as session:
            session.add(Notification(
                user_id=child_id,
                type=NotificationType.STORY_UNLOCK,
                title=UNLOCK_TITLE,
                message=unlock_message(title),
                data={"chapterTitle": title},
            ))
            session.commit()


class WebhookNotificationSink:
    """POSTs the event as JSON to an external push gateway."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def notify_chapter_unlocked(self, child_id: int, title: str) -> None:
        payload = {
            "user_id": child_id,
            "type": NotificationType.STORY_UNLOCK.value,
            "title": UNLOCK_TITLE,
            "message": unlock_message(title),
            "data": {"chapterTitle": title},
        }
        resp = requests.post(self.url, json=payload, timeout=self.timeout)
        resp.raise_for_status()


class FanOutNotificationSink:
    """Delivers to every sink; one failing sink does not stop the others."""

    def __init__(self, sinks: List[NotificationSink]):
        self.sinks = sinks

    def notify_chapter_unlocked(self, child_id: int, title: str) -> None:
        for sink in self.sinks:
            try:
                sink.notify_chapter_unlocked(child_id, title)
            except Exception as e:
                logger.warning(f"{type(sink).__name__} failed for child {child_id}: {e}")


def build_notification_sink(engine, config: Optional[Settings] = None) -> NotificationSink:
    config = config or default_settings
    database_sink = DatabaseNotificationSink(engine)
    if not config.NOTIFICATION_WEBHOOK_URL:
        return database_sink
    return FanOutNotificationSink([database_sink, WebhookNotificationSink(config.NOTIFICATION_WEBHOOK_URL)])
