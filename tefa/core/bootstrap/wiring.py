"""
TEFA Bootstrap — Workshop Wiring
================================
build_workshop() assembles every engine around one EntityStore and
one CommandBus that shares the store's lock.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from tefa.ai.assistant import DiagnosticAssistant
from tefa.config.settings import WorkshopSettings
from tefa.core.bootstrap.invariants import run_store_checks
from tefa.core.bootstrap.seed import seed_events
from tefa.core.commands.bus import CommandBus
from tefa.core.numbering import CodeGenerator
from tefa.core.store import EntityStore, Notification
from tefa.core.time import Clock, SystemClock
from tefa.engines.inventory.services import InventoryService
from tefa.engines.ledger.services import LedgerService
from tefa.engines.notification.services import NotificationService
from tefa.engines.retail.services import RetailService
from tefa.engines.staff import MechanicAvailability, Session
from tefa.engines.workshop.services import WorkshopService
from tefa.projections.workshop import WorkshopReadModel

logger = logging.getLogger("tefa.bootstrap")


@dataclass
class Workshop:
    settings: WorkshopSettings
    clock: Clock
    store: EntityStore
    bus: CommandBus
    mechanics: MechanicAvailability
    session: Session
    inventory: InventoryService
    notifications: NotificationService
    ledger: LedgerService
    workshop: WorkshopService
    retail: RetailService
    projections: WorkshopReadModel
    assistant: DiagnosticAssistant

    # ── Current-user shortcuts ─────────────────────────────────

    def my_notifications(self) -> List[Notification]:
        user = self.session.current_user
        return self.notifications.list_for(user.id if user else None)

    def my_unread_count(self) -> int:
        user = self.session.current_user
        return self.notifications.unread_count(user.id if user else None)

    def mark_all_read(self) -> int:
        """Mark the logged-in user's notifications read; 0 when logged out."""
        user = self.session.current_user
        if user is None:
            return 0
        return self.notifications.mark_all_read(user.id, actor_id=user.id)


def build_workshop(
    settings: Optional[WorkshopSettings] = None,
    clock: Optional[Clock] = None,
    rng: Optional[random.Random] = None,
    *,
    seed: bool = True,
    assistant: Optional[DiagnosticAssistant] = None,
) -> Workshop:
    settings = settings or WorkshopSettings.from_env()
    clock = clock or SystemClock()
    codes = CodeGenerator(rng)

    store = EntityStore()
    bus = CommandBus(lock=store.lock)
    mechanics = MechanicAvailability(store)
    notifications = NotificationService(store=store, command_bus=bus, clock=clock)
    ledger = LedgerService(store=store, command_bus=bus, clock=clock)
    inventory = InventoryService(store=store, command_bus=bus, clock=clock)
    workshop = WorkshopService(
        store=store,
        command_bus=bus,
        mechanics=mechanics,
        notifications=notifications,
        ledger=ledger,
        settings=settings,
        clock=clock,
        codes=codes,
    )
    retail = RetailService(
        store=store,
        command_bus=bus,
        ledger=ledger,
        settings=settings,
        clock=clock,
        codes=codes,
    )

    if seed:
        store.apply_batch(seed_events(clock.now_utc()))
        run_store_checks(store)

    logger.info(
        f"Workshop ready: {len(store.list_users())} users, "
        f"{len(store.list_items())} items, {len(store.list_jobs())} jobs"
    )
    return Workshop(
        settings=settings,
        clock=clock,
        store=store,
        bus=bus,
        mechanics=mechanics,
        session=Session(store),
        inventory=inventory,
        notifications=notifications,
        ledger=ledger,
        workshop=workshop,
        retail=retail,
        projections=WorkshopReadModel(store),
        assistant=assistant or DiagnosticAssistant.from_settings(settings),
    )
