"""
TEFA Inventory Engine — Event Types and Payload Builders
========================================================
Inventory builds payloads only; the EntityStore applies them.

Stock movement payloads are also used by the workshop and retail
engines, which fold decrements into their own event batches.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from tefa.core.commands.base import Command


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_ITEM_CREATED_V1 = "inventory.item.created.v1"
INVENTORY_ITEM_UPDATED_V1 = "inventory.item.updated.v1"
INVENTORY_ITEM_DELETED_V1 = "inventory.item.deleted.v1"
INVENTORY_STOCK_DECREMENTED_V1 = "inventory.stock.decremented.v1"
INVENTORY_STOCK_INCREMENTED_V1 = "inventory.stock.incremented.v1"


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    "inventory.item.create.request": INVENTORY_ITEM_CREATED_V1,
    "inventory.item.update.request": INVENTORY_ITEM_UPDATED_V1,
    "inventory.item.delete.request": INVENTORY_ITEM_DELETED_V1,
    "inventory.stock.decrement.request": INVENTORY_STOCK_DECREMENTED_V1,
    "inventory.stock.increment.request": INVENTORY_STOCK_INCREMENTED_V1,
}


def resolve_inventory_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def build_stock_decremented_payload(
    *, item_id: str, quantity: int, reason: str,
    reference_id: Optional[str], occurred_at: datetime,
) -> dict:
    return {
        "item_id": item_id,
        "quantity": quantity,
        "reason": reason,
        "reference_id": reference_id,
        "decremented_at": occurred_at,
    }


def build_stock_incremented_payload(
    *, item_id: str, quantity: int, reason: str,
    reference_id: Optional[str], occurred_at: datetime,
) -> dict:
    return {
        "item_id": item_id,
        "quantity": quantity,
        "reason": reason,
        "reference_id": reference_id,
        "incremented_at": occurred_at,
    }


def build_item_created_payload(command: Command) -> dict:
    payload = dict(command.payload)
    payload["created_at"] = command.issued_at
    return payload


def build_item_updated_payload(command: Command) -> dict:
    return {
        "item_id": command.payload["item_id"],
        "changes": dict(command.payload["changes"]),
        "updated_at": command.issued_at,
    }


def build_item_deleted_payload(command: Command) -> dict:
    return {
        "item_id": command.payload["item_id"],
        "deleted_at": command.issued_at,
    }


def build_stock_decremented_from_command(command: Command) -> dict:
    return build_stock_decremented_payload(
        item_id=command.payload["item_id"],
        quantity=command.payload["quantity"],
        reason=command.payload["reason"],
        reference_id=command.payload.get("reference_id"),
        occurred_at=command.issued_at,
    )


def build_stock_incremented_from_command(command: Command) -> dict:
    return build_stock_incremented_payload(
        item_id=command.payload["item_id"],
        quantity=command.payload["quantity"],
        reason=command.payload["reason"],
        reference_id=command.payload.get("reference_id"),
        occurred_at=command.issued_at,
    )
