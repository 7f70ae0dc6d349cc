"""
TEFA Inventory Engine — Policies
================================
Engine-specific validation policies for inventory operations.
"""

from __future__ import annotations

from typing import Optional

from tefa.core.commands.base import Command
from tefa.core.commands.rejection import ReasonCode, RejectionReason


def item_must_exist_policy(
    command: Command, item_lookup=None,
) -> Optional[RejectionReason]:
    """Update/delete/stock movements need a known item_id."""
    if item_lookup is None:
        return None
    if command.command_type == "inventory.item.create.request":
        return None
    item_id = command.payload.get("item_id")
    if item_lookup(item_id) is None:
        return RejectionReason(
            code=ReasonCode.ITEM_NOT_FOUND,
            message=f"Inventory item '{item_id}' not found.",
            policy_name="item_must_exist_policy",
        )
    return None


def item_id_must_be_unique_policy(
    command: Command, item_lookup=None,
) -> Optional[RejectionReason]:
    if item_lookup is None:
        return None
    if command.command_type != "inventory.item.create.request":
        return None
    item_id = command.payload.get("item_id")
    if item_lookup(item_id) is not None:
        return RejectionReason(
            code=ReasonCode.VALIDATION_FAILED,
            message=f"Inventory item '{item_id}' already exists.",
            policy_name="item_id_must_be_unique_policy",
        )
    return None


def negative_stock_policy(
    command: Command, stock_lookup=None,
) -> Optional[RejectionReason]:
    """
    Reject a decrement that would drive stock below zero.

    Only active when stock_lookup is provided.
    """
    if stock_lookup is None:
        return None
    if command.command_type != "inventory.stock.decrement.request":
        return None

    item_id = command.payload.get("item_id")
    quantity = command.payload.get("quantity", 0)
    current_stock = stock_lookup(item_id)

    if current_stock is None or current_stock < quantity:
        return RejectionReason(
            code=ReasonCode.INSUFFICIENT_STOCK,
            message=(
                f"Insufficient stock: {current_stock or 0} available, "
                f"{quantity} requested for item {item_id}."
            ),
            policy_name="negative_stock_policy",
        )
    return None
