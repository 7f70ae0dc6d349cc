"""
TEFA Retail Engine — Request Commands
=====================================
A checkout carries its cart as (item_id, qty) lines. Items are
referenced by id; prices are read from the store at checkout time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Tuple

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command, build_command
from tefa.core.errors import ValidationError
from tefa.core.store import InventoryItem

RETAIL_SALE_CHECKOUT_REQUEST = "retail.sale.checkout.request"

RETAIL_COMMAND_TYPES = frozenset({RETAIL_SALE_CHECKOUT_REQUEST})


def normalize_cart(cart: Iterable) -> Tuple[Tuple[str, int], ...]:
    """
    Accepts (item, qty) pairs or {"item": ..., "qty": ...} dicts, where
    item is an id or an InventoryItem. Returns (item_id, qty) pairs.
    """
    lines = []
    for line in cart:
        if isinstance(line, dict):
            item = line.get("item", line.get("item_id"))
            qty = line.get("qty")
        else:
            item, qty = line
        item_id = item.id if isinstance(item, InventoryItem) else item
        if not item_id:
            raise ValidationError("cart line item must be non-empty.")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(
                f"cart line qty for '{item_id}' must be a positive integer."
            )
        lines.append((item_id, qty))
    return tuple(lines)


@dataclass(frozen=True)
class CheckoutRequest:
    """Sell every line of the cart as one Retail transaction."""
    lines: tuple

    def __post_init__(self):
        object.__setattr__(self, "lines", normalize_cart(self.lines))
        if not self.lines:
            raise ValidationError("cart must contain at least one line.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(RETAIL_SALE_CHECKOUT_REQUEST, {
            "lines": [
                {"item_id": item_id, "qty": qty} for item_id, qty in self.lines
            ],
        }, issued_at=issued_at, actor_id=actor_id)
