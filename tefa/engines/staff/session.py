"""
TEFA Staff Engine — Session
===========================
Explicit holder for the "current user" of one front-end session.

Role selection is trusted input: login(role) picks the first user
with that role, or a guest public user when nobody has it.
"""

from __future__ import annotations

import logging
from typing import Optional

from tefa.core.store import EntityStore, Role, User, coerce_enum

logger = logging.getLogger("tefa.staff")

GUEST_USER_ID = "guest"


def make_guest() -> User:
    return User(id=GUEST_USER_ID, name="Guest", role=Role.PUBLIC)


class Session:

    def __init__(self, store: EntityStore):
        self._store = store
        self._current: Optional[User] = None

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    @property
    def active_role(self) -> Role:
        return self._current.role if self._current is not None else Role.PUBLIC

    def login(self, role) -> User:
        role = coerce_enum(Role, role)
        user = next(iter(self._store.list_users(role=role)), None)
        self._current = user if user is not None else make_guest()
        logger.info(f"Session login as {self._current.id} ({self._current.role.value})")
        return self._current

    def logout(self) -> None:
        self._current = None
