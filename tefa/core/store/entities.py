"""
TEFA Entity Model
=================
Users, inventory items, service jobs, notifications and transactions.

Mutable entities (User, InventoryItem, ServiceJob, Notification) are
changed only by EntityStore.apply(). Snapshots (PartUsage,
TransactionLine, Transaction) are frozen once created.

Amounts are integers in the smallest currency unit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Role(Enum):
    PUBLIC = "public"
    ADMIN = "admin"
    SA = "sa"               # service advisor (front desk)
    MECHANIC = "mechanic"
    CASHIER = "cashier"


class Dept(Enum):
    TKRO = "TKRO"   # light vehicle (car) engineering
    TBSM = "TBSM"   # motorcycle engineering
    FB = "FB"       # food & beverage counter


class JobStatus(Enum):
    PENDING = "pending"
    DIAGNOSING = "diagnosing"
    REPAIRING = "repairing"
    WASHING = "washing"
    READY = "ready"
    COMPLETED = "completed"


# Statuses that hand the mechanic back to the free pool.
RELEASING_STATUSES = frozenset({JobStatus.READY, JobStatus.COMPLETED})
IN_PROGRESS_STATUSES = frozenset({
    JobStatus.DIAGNOSING, JobStatus.REPAIRING, JobStatus.WASHING,
})
TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED})


class TransactionType(Enum):
    SERVICE = "Service"
    RETAIL = "Retail"


def coerce_enum(enum_cls, value):
    """
    Accept an enum member or its value; raise ValueError otherwise.

    String values match case-insensitively, so "tkro" resolves to
    Dept.TKRO and "service" to TransactionType.SERVICE.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if isinstance(value, str):
        folded = value.strip().casefold()
        for member in enum_cls:
            if isinstance(member.value, str) and member.value.casefold() == folded:
                return member
    allowed = sorted(m.value for m in enum_cls)
    raise ValueError(
        f"'{value}' is not a valid {enum_cls.__name__}. "
        f"Must be one of: {allowed}"
    )


@dataclass
class User:
    id: str
    name: str
    role: Role
    is_busy: bool = False

    @property
    def is_mechanic(self) -> bool:
        return self.role == Role.MECHANIC


@dataclass
class InventoryItem:
    id: str
    name: str
    dept: Dept
    stock: int
    price: int
    category: str = ""


@dataclass(frozen=True)
class PartUsage:
    """Price-at-time-of-use snapshot of an inventory item consumed by a job."""
    item_id: str
    name: str
    qty: int
    price: int

    @property
    def subtotal(self) -> int:
        return self.qty * self.price


@dataclass
class ServiceJob:
    id: str
    unique_code: str
    owner_name: str
    plate_number: str
    vehicle_type: str
    dept: Dept
    complaint: str
    status: JobStatus
    entry_time: datetime
    mechanic_id: Optional[str] = None
    mechanic_name: Optional[str] = None
    cost_estimate: int = 0
    parts_used: Tuple[PartUsage, ...] = ()
    pickup_note: str = ""

    @property
    def is_closed(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass
class Notification:
    id: str
    user_id: str
    message: str
    timestamp: datetime
    read: bool = False
    sequence: int = 0


@dataclass(frozen=True)
class TransactionLine:
    name: str
    qty: int
    price: int

    @property
    def subtotal(self) -> int:
        return self.qty * self.price


@dataclass(frozen=True)
class Transaction:
    id: str
    date: datetime
    total: int
    items: Tuple[TransactionLine, ...]
    type: TransactionType
    ref_code: str
    sequence: int = field(default=0, compare=False)
