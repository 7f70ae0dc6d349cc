"""
TEFA Notification Engine — Request Commands
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command, build_command
from tefa.core.errors import ValidationError

NOTIFICATION_MESSAGE_PUSH_REQUEST = "notification.message.push.request"
NOTIFICATION_MESSAGE_READ_REQUEST = "notification.message.read.request"
NOTIFICATION_INBOX_READ_ALL_REQUEST = "notification.inbox.read_all.request"

NOTIFICATION_COMMAND_TYPES = frozenset({
    NOTIFICATION_MESSAGE_PUSH_REQUEST,
    NOTIFICATION_MESSAGE_READ_REQUEST,
    NOTIFICATION_INBOX_READ_ALL_REQUEST,
})


@dataclass(frozen=True)
class NotificationPushRequest:
    notification_id: str
    user_id: str
    message: str

    def __post_init__(self):
        if not self.notification_id:
            raise ValidationError("notification_id must be non-empty.")
        if not self.user_id:
            raise ValidationError("user_id must be non-empty.")
        if not self.message:
            raise ValidationError("message must be non-empty.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(NOTIFICATION_MESSAGE_PUSH_REQUEST, {
            "notification_id": self.notification_id,
            "user_id": self.user_id,
            "message": self.message,
        }, issued_at=issued_at, actor_id=actor_id)


@dataclass(frozen=True)
class NotificationReadRequest:
    notification_id: str

    def __post_init__(self):
        if not self.notification_id:
            raise ValidationError("notification_id must be non-empty.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(NOTIFICATION_MESSAGE_READ_REQUEST, {
            "notification_id": self.notification_id,
        }, issued_at=issued_at, actor_id=actor_id)


@dataclass(frozen=True)
class InboxReadAllRequest:
    user_id: str

    def __post_init__(self):
        if not self.user_id:
            raise ValidationError("user_id must be non-empty.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(NOTIFICATION_INBOX_READ_ALL_REQUEST, {
            "user_id": self.user_id,
        }, issued_at=issued_at, actor_id=actor_id)
