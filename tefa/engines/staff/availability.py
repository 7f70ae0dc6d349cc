"""
TEFA Staff Engine — Mechanic Availability Tracker
=================================================
Derived view over the users in the EntityStore.

A mechanic is busy while attached to a job that has not reached
ready/completed. The workshop engine folds busy_event()/free_event()
into its own batches so that availability flips atomically with the
job write; mark_busy()/mark_free() are the standalone forms.

Unknown users and non-mechanics are ignored (no-op), never an error.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from tefa.core.store import EntityStore, User
from tefa.engines.staff.events import (
    STAFF_MECHANIC_BUSY_MARKED_V1,
    STAFF_MECHANIC_FREED_V1,
    build_mechanic_busy_payload,
    build_mechanic_freed_payload,
)

logger = logging.getLogger("tefa.staff")


class MechanicAvailability:

    def __init__(self, store: EntityStore):
        self._store = store

    def _mechanic(self, user_id: Optional[str]) -> Optional[User]:
        user = self._store.get_user(user_id)
        if user is None or not user.is_mechanic:
            return None
        return user

    def is_mechanic_free(self, user_id: Optional[str]) -> bool:
        mechanic = self._mechanic(user_id)
        return mechanic is not None and not mechanic.is_busy

    def list_available(self) -> List[User]:
        return [
            u for u in self._store.list_users()
            if u.is_mechanic and not u.is_busy
        ]

    def list_mechanics(self) -> List[User]:
        return [u for u in self._store.list_users() if u.is_mechanic]

    def busy_event(self, user_id: Optional[str]) -> Optional[Tuple[str, dict]]:
        """Event that marks the mechanic busy, or None if nothing would change."""
        mechanic = self._mechanic(user_id)
        if mechanic is None or mechanic.is_busy:
            return None
        return (STAFF_MECHANIC_BUSY_MARKED_V1, build_mechanic_busy_payload(mechanic.id))

    def free_event(self, user_id: Optional[str]) -> Optional[Tuple[str, dict]]:
        """Event that frees the mechanic, or None if nothing would change."""
        mechanic = self._mechanic(user_id)
        if mechanic is None or not mechanic.is_busy:
            return None
        return (STAFF_MECHANIC_FREED_V1, build_mechanic_freed_payload(mechanic.id))

    def mark_busy(self, user_id: Optional[str]) -> bool:
        with self._store.lock:
            event = self.busy_event(user_id)
            if event is None:
                logger.debug(f"mark_busy no-op for '{user_id}'")
                return False
            self._store.apply(*event)
        return True

    def mark_free(self, user_id: Optional[str]) -> bool:
        with self._store.lock:
            event = self.free_event(user_id)
            if event is None:
                logger.debug(f"mark_free no-op for '{user_id}'")
                return False
            self._store.apply(*event)
        return True
