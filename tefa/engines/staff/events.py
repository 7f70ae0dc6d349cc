"""
TEFA Staff Engine — Event Types and Payload Builders
"""

from __future__ import annotations

STAFF_USER_REGISTERED_V1 = "staff.user.registered.v1"
STAFF_MECHANIC_BUSY_MARKED_V1 = "staff.mechanic.busy_marked.v1"
STAFF_MECHANIC_FREED_V1 = "staff.mechanic.freed.v1"

STAFF_EVENT_TYPES = (
    STAFF_USER_REGISTERED_V1,
    STAFF_MECHANIC_BUSY_MARKED_V1,
    STAFF_MECHANIC_FREED_V1,
)


def build_user_registered_payload(*, user_id: str, name: str, role: str,
                                  is_busy: bool = False) -> dict:
    return {
        "user_id": user_id,
        "name": name,
        "role": role,
        "is_busy": is_busy,
    }


def build_mechanic_busy_payload(user_id: str) -> dict:
    return {"user_id": user_id}


def build_mechanic_freed_payload(user_id: str) -> dict:
    return {"user_id": user_id}
