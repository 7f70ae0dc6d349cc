"""
TEFA Inventory Engine — Request Commands
========================================
Typed inventory requests that convert into canonical Command objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command, build_command
from tefa.core.errors import ValidationError
from tefa.core.store import ITEM_MUTABLE_FIELDS, Dept, coerce_enum


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_ITEM_CREATE_REQUEST = "inventory.item.create.request"
INVENTORY_ITEM_UPDATE_REQUEST = "inventory.item.update.request"
INVENTORY_ITEM_DELETE_REQUEST = "inventory.item.delete.request"
INVENTORY_STOCK_DECREMENT_REQUEST = "inventory.stock.decrement.request"
INVENTORY_STOCK_INCREMENT_REQUEST = "inventory.stock.increment.request"

INVENTORY_COMMAND_TYPES = frozenset({
    INVENTORY_ITEM_CREATE_REQUEST,
    INVENTORY_ITEM_UPDATE_REQUEST,
    INVENTORY_ITEM_DELETE_REQUEST,
    INVENTORY_STOCK_DECREMENT_REQUEST,
    INVENTORY_STOCK_INCREMENT_REQUEST,
})

VALID_DECREMENT_REASONS = frozenset({"SALE", "CONSUMPTION", "ADJUSTMENT"})
VALID_INCREMENT_REASONS = frozenset({"RESTOCK", "RETURN", "ADJUSTMENT"})


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be positive integer.")


def _check_amount(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer.")


def _check_dept(dept) -> str:
    try:
        return coerce_enum(Dept, dept).value
    except ValueError as exc:
        raise ValidationError(str(exc)) from None


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ItemCreateRequest:
    """Register a new inventory item."""
    item_id: str
    name: str
    dept: str
    stock: int = 0
    price: int = 0
    category: str = ""

    def __post_init__(self):
        if not self.item_id:
            raise ValidationError("item_id must be non-empty.")
        if not self.name or not str(self.name).strip():
            raise ValidationError("name must be non-empty.")
        object.__setattr__(self, "dept", _check_dept(self.dept))
        _check_amount("stock", self.stock)
        _check_amount("price", self.price)

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(INVENTORY_ITEM_CREATE_REQUEST, {
            "item_id": self.item_id,
            "name": self.name.strip(),
            "dept": self.dept,
            "stock": self.stock,
            "price": self.price,
            "category": self.category,
        }, issued_at=issued_at, actor_id=actor_id)


@dataclass(frozen=True)
class ItemUpdateRequest:
    """Merge the provided fields into an existing item."""
    item_id: str
    changes: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.item_id:
            raise ValidationError("item_id must be non-empty.")
        unknown = set(self.changes) - ITEM_MUTABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown item field(s): {sorted(unknown)}. "
                f"Must be among: {sorted(ITEM_MUTABLE_FIELDS)}"
            )
        changes = dict(self.changes)
        if "name" in changes:
            if not changes["name"] or not str(changes["name"]).strip():
                raise ValidationError("name must be non-empty.")
            changes["name"] = str(changes["name"]).strip()
        if "dept" in changes:
            changes["dept"] = _check_dept(changes["dept"])
        if "stock" in changes:
            _check_amount("stock", changes["stock"])
        if "price" in changes:
            _check_amount("price", changes["price"])
        object.__setattr__(self, "changes", changes)

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(INVENTORY_ITEM_UPDATE_REQUEST, {
            "item_id": self.item_id,
            "changes": dict(self.changes),
        }, issued_at=issued_at, actor_id=actor_id)


@dataclass(frozen=True)
class ItemDeleteRequest:
    item_id: str

    def __post_init__(self):
        if not self.item_id:
            raise ValidationError("item_id must be non-empty.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(INVENTORY_ITEM_DELETE_REQUEST, {
            "item_id": self.item_id,
        }, issued_at=issued_at, actor_id=actor_id)


@dataclass(frozen=True)
class StockDecrementRequest:
    """Take units out of stock (sale, job consumption, correction)."""
    item_id: str
    quantity: int
    reason: str = "SALE"
    reference_id: Optional[str] = None

    def __post_init__(self):
        if not self.item_id:
            raise ValidationError("item_id must be non-empty.")
        _check_quantity(self.quantity)
        if self.reason not in VALID_DECREMENT_REASONS:
            raise ValidationError(f"reason '{self.reason}' not valid.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(INVENTORY_STOCK_DECREMENT_REQUEST, {
            "item_id": self.item_id,
            "quantity": self.quantity,
            "reason": self.reason,
            "reference_id": self.reference_id,
        }, issued_at=issued_at, actor_id=actor_id)


@dataclass(frozen=True)
class StockIncrementRequest:
    """Put units into stock. No upper bound."""
    item_id: str
    quantity: int
    reason: str = "RESTOCK"
    reference_id: Optional[str] = None

    def __post_init__(self):
        if not self.item_id:
            raise ValidationError("item_id must be non-empty.")
        _check_quantity(self.quantity)
        if self.reason not in VALID_INCREMENT_REASONS:
            raise ValidationError(f"reason '{self.reason}' not valid.")

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(INVENTORY_STOCK_INCREMENT_REQUEST, {
            "item_id": self.item_id,
            "quantity": self.quantity,
            "reason": self.reason,
            "reference_id": self.reference_id,
        }, issued_at=issued_at, actor_id=actor_id)
