"""
TEFA Notification Engine — Event Types and Payload Builders
"""

from __future__ import annotations

from datetime import datetime

NOTIFICATION_PUSHED_V1 = "notification.message.pushed.v1"
NOTIFICATION_READ_V1 = "notification.message.read.v1"

NOTIFICATION_EVENT_TYPES = (
    NOTIFICATION_PUSHED_V1,
    NOTIFICATION_READ_V1,
)


def build_notification_pushed_payload(
    *, notification_id: str, user_id: str, message: str, timestamp: datetime,
) -> dict:
    return {
        "notification_id": notification_id,
        "user_id": user_id,
        "message": message,
        "timestamp": timestamp,
    }


def build_notification_read_payload(*, notification_id: str, read_at: datetime) -> dict:
    return {
        "notification_id": notification_id,
        "read_at": read_at,
    }
