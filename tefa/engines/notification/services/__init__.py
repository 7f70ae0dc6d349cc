"""
TEFA Notification Engine — Application Service (Notification Center)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command
from tefa.core.commands.bus import CommandBus
from tefa.core.commands.outcomes import ExecutionResult
from tefa.core.commands.rejection import ReasonCode, RejectionReason
from tefa.core.numbering import new_id
from tefa.core.store import EntityStore, Notification
from tefa.core.time import Clock, SystemClock
from tefa.engines.notification.commands import (
    NOTIFICATION_COMMAND_TYPES,
    NOTIFICATION_INBOX_READ_ALL_REQUEST,
    NOTIFICATION_MESSAGE_PUSH_REQUEST,
    NOTIFICATION_MESSAGE_READ_REQUEST,
    InboxReadAllRequest,
    NotificationPushRequest,
    NotificationReadRequest,
)
from tefa.engines.notification.events import (
    NOTIFICATION_PUSHED_V1,
    NOTIFICATION_READ_V1,
    build_notification_pushed_payload,
    build_notification_read_payload,
)

logger = logging.getLogger("tefa.notifications")


def newest_first(notifications: List[Notification]) -> List[Notification]:
    return sorted(
        notifications,
        key=lambda n: (n.timestamp, n.sequence),
        reverse=True,
    )


class _NotificationCommandHandler:
    def __init__(self, service: "NotificationService"):
        self._service = service

    def execute(self, command: Command) -> ExecutionResult:
        return self._service._execute_command(command)


class NotificationService:
    """
    Fire-and-forget message queue keyed by recipient.

    Recipients are not validated: anything with a user id can be
    notified. Reading is idempotent; unknown ids are a no-op.
    """

    def __init__(
        self,
        *,
        store: EntityStore,
        command_bus: CommandBus,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._command_bus = command_bus
        self._clock = clock or SystemClock()
        handler = _NotificationCommandHandler(self)
        for command_type in sorted(NOTIFICATION_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def pushed_event(self, user_id: str, message: str) -> tuple:
        """Event for a new unread notification, for callers batching their own writes."""
        return (NOTIFICATION_PUSHED_V1, build_notification_pushed_payload(
            notification_id=new_id(),
            user_id=user_id,
            message=message,
            timestamp=self._clock.now_utc(),
        ))

    def _execute_command(self, command: Command) -> ExecutionResult:
        ct = command.command_type

        if ct == NOTIFICATION_MESSAGE_PUSH_REQUEST:
            payload = build_notification_pushed_payload(
                notification_id=command.payload["notification_id"],
                user_id=command.payload["user_id"],
                message=command.payload["message"],
                timestamp=command.issued_at,
            )
            events = [(NOTIFICATION_PUSHED_V1, payload)]
            value = payload["notification_id"]

        elif ct == NOTIFICATION_MESSAGE_READ_REQUEST:
            nid = command.payload["notification_id"]
            note = self._store.get_notification(nid)
            if note is None or note.read:
                return ExecutionResult.noop(ct, RejectionReason(
                    code=ReasonCode.VALIDATION_FAILED,
                    message=f"Notification '{nid}' unknown or already read.",
                    policy_name="notification_unread_policy",
                ))
            events = [(NOTIFICATION_READ_V1, build_notification_read_payload(
                notification_id=nid, read_at=command.issued_at,
            ))]
            value = nid

        elif ct == NOTIFICATION_INBOX_READ_ALL_REQUEST:
            user_id = command.payload["user_id"]
            events = [
                (NOTIFICATION_READ_V1, build_notification_read_payload(
                    notification_id=n.id, read_at=command.issued_at,
                ))
                for n in self._store.list_notifications(user_id)
                if not n.read
            ]
            value = len(events)
            if not events:
                return ExecutionResult.noop(ct, RejectionReason(
                    code=ReasonCode.VALIDATION_FAILED,
                    message=f"No unread notifications for '{user_id}'.",
                    policy_name="notification_unread_policy",
                ), value=0)

        else:
            raise ValueError(f"Unsupported notification command type: {ct}")

        self._store.apply_batch(events)
        logger.debug(f"{ct} applied {len(events)} event(s)")
        return ExecutionResult(command_type=ct, events=tuple(events),
                               applied=True, value=value)

    def _run(self, request, actor_id: str):
        command = request.to_command(
            issued_at=self._clock.now_utc(), actor_id=actor_id,
        )
        return self._command_bus.handle(command).unwrap()

    # ── Operations ─────────────────────────────────────────────

    def push(self, user_id: str, message: str, *,
             actor_id: str = SYSTEM_ACTOR_ID) -> str:
        request = NotificationPushRequest(
            notification_id=new_id(), user_id=user_id, message=message,
        )
        return self._run(request, actor_id).value

    def mark_read(self, notification_id: str, *,
                  actor_id: str = SYSTEM_ACTOR_ID) -> bool:
        """True when the notification flipped to read on this call."""
        result = self._run(NotificationReadRequest(notification_id=notification_id),
                           actor_id)
        return result.applied

    def mark_all_read(self, user_id: str, *,
                      actor_id: str = SYSTEM_ACTOR_ID) -> int:
        """Mark every notification for user_id read; returns how many changed."""
        return self._run(InboxReadAllRequest(user_id=user_id), actor_id).value

    # ── Queries ────────────────────────────────────────────────

    def list_for(self, user_id: Optional[str]) -> List[Notification]:
        if not user_id:
            return []
        return newest_first(self._store.list_notifications(user_id))

    def unread_count(self, user_id: Optional[str]) -> int:
        return sum(1 for n in self.list_for(user_id) if not n.read)
