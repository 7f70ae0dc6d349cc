"""
TEFA Inventory Engine — Application Service (Inventory Ledger)
==============================================================
Orchestrates inventory commands → policies → events → store.

The stock floor is checked twice: by negative_stock_policy against
current state, and again by EntityStore.apply_batch() while the
batch is applied. Both run under the store lock held by the bus.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command
from tefa.core.commands.bus import CommandBus
from tefa.core.commands.outcomes import ExecutionResult
from tefa.core.errors import error_for_rejection
from tefa.core.numbering import new_id
from tefa.core.store import Dept, EntityStore, InventoryItem, coerce_enum
from tefa.core.time import Clock, SystemClock
from tefa.engines.inventory.commands import (
    INVENTORY_COMMAND_TYPES,
    ItemCreateRequest,
    ItemDeleteRequest,
    ItemUpdateRequest,
    StockDecrementRequest,
    StockIncrementRequest,
)
from tefa.engines.inventory.events import (
    build_item_created_payload,
    build_item_deleted_payload,
    build_item_updated_payload,
    build_stock_decremented_from_command,
    build_stock_incremented_from_command,
    resolve_inventory_event_type,
)
from tefa.engines.inventory.policies import (
    item_id_must_be_unique_policy,
    item_must_exist_policy,
    negative_stock_policy,
)

logger = logging.getLogger("tefa.inventory")


PAYLOAD_BUILDERS = {
    "inventory.item.create.request": build_item_created_payload,
    "inventory.item.update.request": build_item_updated_payload,
    "inventory.item.delete.request": build_item_deleted_payload,
    "inventory.stock.decrement.request": build_stock_decremented_from_command,
    "inventory.stock.increment.request": build_stock_incremented_from_command,
}


class _InventoryCommandHandler:
    def __init__(self, service: "InventoryService"):
        self._service = service

    def execute(self, command: Command) -> ExecutionResult:
        return self._service._execute_command(command)


class InventoryService:
    """
    Inventory Ledger.

    Item CRUD plus stock increment/decrement. Errors surface as
    ValidationError, NotFoundError and InsufficientStockError.
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
        self._register_handlers()

    def _register_handlers(self) -> None:
        handler = _InventoryCommandHandler(self)
        for command_type in sorted(INVENTORY_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def _stock_of(self, item_id: str) -> Optional[int]:
        item = self._store.get_item(item_id)
        return item.stock if item is not None else None

    def _execute_command(self, command: Command) -> ExecutionResult:
        event_type = resolve_inventory_event_type(command.command_type)
        if event_type is None:
            raise ValueError(
                f"Unsupported inventory command type: {command.command_type}"
            )

        for reason in (
            item_id_must_be_unique_policy(command, item_lookup=self._store.get_item),
            item_must_exist_policy(command, item_lookup=self._store.get_item),
            negative_stock_policy(command, stock_lookup=self._stock_of),
        ):
            if reason is not None:
                raise error_for_rejection(reason)

        payload = PAYLOAD_BUILDERS[command.command_type](command)
        self._store.apply(event_type, payload)
        logger.info(f"{event_type} item={payload['item_id']}")

        return ExecutionResult(
            command_type=command.command_type,
            events=((event_type, payload),),
            applied=True,
            value=payload["item_id"],
        )

    def _run(self, request, actor_id: str):
        command = request.to_command(
            issued_at=self._clock.now_utc(), actor_id=actor_id,
        )
        return self._command_bus.handle(command).unwrap()

    # ── Operations ─────────────────────────────────────────────

    def create(
        self,
        name: str,
        dept,
        stock: int = 0,
        price: int = 0,
        category: str = "",
        *,
        actor_id: str = SYSTEM_ACTOR_ID,
    ) -> str:
        """Register a new item and return its id."""
        request = ItemCreateRequest(
            item_id=new_id(), name=name, dept=dept,
            stock=stock, price=price, category=category,
        )
        return self._run(request, actor_id).value

    def update(
        self,
        item_id: str,
        changes: Optional[dict] = None,
        *,
        actor_id: str = SYSTEM_ACTOR_ID,
        **fields,
    ) -> InventoryItem:
        """Merge only the provided fields into the item."""
        merged = dict(changes or {})
        merged.update(fields)
        self._run(ItemUpdateRequest(item_id=item_id, changes=merged), actor_id)
        return self._store.get_item(item_id)

    def delete(self, item_id: str, *, actor_id: str = SYSTEM_ACTOR_ID) -> None:
        """Remove the item. Job part snapshots that name it are untouched."""
        self._run(ItemDeleteRequest(item_id=item_id), actor_id)

    def decrement(
        self,
        item_id: str,
        qty: int,
        *,
        reason: str = "SALE",
        reference_id: Optional[str] = None,
        actor_id: str = SYSTEM_ACTOR_ID,
    ) -> int:
        """Take qty units out of stock; returns the remaining stock."""
        self._run(StockDecrementRequest(
            item_id=item_id, quantity=qty,
            reason=reason, reference_id=reference_id,
        ), actor_id)
        return self._store.get_item(item_id).stock

    def increment(
        self,
        item_id: str,
        qty: int,
        *,
        reason: str = "RESTOCK",
        reference_id: Optional[str] = None,
        actor_id: str = SYSTEM_ACTOR_ID,
    ) -> int:
        self._run(StockIncrementRequest(
            item_id=item_id, quantity=qty,
            reason=reason, reference_id=reference_id,
        ), actor_id)
        return self._store.get_item(item_id).stock

    # ── Queries ────────────────────────────────────────────────

    def get(self, item_id: str) -> Optional[InventoryItem]:
        return self._store.get_item(item_id)

    def list_items(self, dept=None) -> List[InventoryItem]:
        items = self._store.list_items()
        if dept is not None:
            dept = coerce_enum(Dept, dept)
            items = [i for i in items if i.dept == dept]
        return items
