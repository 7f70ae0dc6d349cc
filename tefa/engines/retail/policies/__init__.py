"""
TEFA Retail Engine — Policies
=============================
Checkout is validated as a whole before anything is sold: every
item must exist, and the quantities asked for each item (summed
across lines) must fit its current stock.
"""

from __future__ import annotations

from typing import Dict, Optional

from tefa.core.commands.base import Command
from tefa.core.commands.rejection import ReasonCode, RejectionReason


def _quantities(command: Command) -> Dict[str, int]:
    wanted: Dict[str, int] = {}
    for line in command.payload.get("lines", ()):
        wanted[line["item_id"]] = wanted.get(line["item_id"], 0) + line["qty"]
    return wanted


def cart_items_must_exist_policy(
    command: Command, item_lookup=None,
) -> Optional[RejectionReason]:
    if item_lookup is None:
        return None
    for item_id in _quantities(command):
        if item_lookup(item_id) is None:
            return RejectionReason(
                code=ReasonCode.ITEM_NOT_FOUND,
                message=f"Inventory item '{item_id}' not found.",
                policy_name="cart_items_must_exist_policy",
            )
    return None


def cart_stock_policy(
    command: Command, stock_lookup=None,
) -> Optional[RejectionReason]:
    if stock_lookup is None:
        return None
    for item_id, qty in _quantities(command).items():
        available = stock_lookup(item_id) or 0
        if qty > available:
            return RejectionReason(
                code=ReasonCode.INSUFFICIENT_STOCK,
                message=(
                    f"Insufficient stock: {available} available, "
                    f"{qty} requested for item {item_id}."
                ),
                policy_name="cart_stock_policy",
            )
    return None
