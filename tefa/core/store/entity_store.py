"""
TEFA Entity Store
=================
Authoritative in-memory state for the workshop.

Holds users, inventory items, service jobs, notifications and
transactions in insertion order. The only mutation path is
apply() / apply_batch(): every change arrives as an
(event_type, payload) pair and is appended to the event log.

apply_batch() checks the whole batch before touching any entity:
payload keys, enum values, unknown references and stock floors are
verified (stock against a running tally), so a batch either applies
completely or not at all.

Engines hold ids, never copies; reads return the live entities.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from tefa.core.errors import InsufficientStockError, NotFoundError, ValidationError
from tefa.core.store.entities import (
    Dept,
    InventoryItem,
    JobStatus,
    Notification,
    PartUsage,
    Role,
    ServiceJob,
    Transaction,
    TransactionLine,
    TransactionType,
    User,
)

logger = logging.getLogger("tefa.store")

Event = Tuple[str, dict]

ITEM_MUTABLE_FIELDS = frozenset({"name", "dept", "stock", "price", "category"})

# Keys each event family must carry; checked before a batch touches state.
REQUIRED_PAYLOAD_KEYS = (
    ("staff.user.registered", ("user_id", "name", "role")),
    ("staff.mechanic", ("user_id",)),
    ("inventory.item.created", ("item_id", "name", "dept", "stock", "price")),
    ("inventory.item.updated", ("item_id",)),
    ("inventory.item.deleted", ("item_id",)),
    ("inventory.stock", ("item_id", "quantity")),
    ("workshop.job.registered", (
        "job_id", "unique_code", "owner_name", "plate_number",
        "vehicle_type", "dept", "complaint", "status", "entry_time",
    )),
    ("workshop.job.assigned", ("job_id", "mechanic_id", "mechanic_name", "status")),
    ("workshop.job.status_changed", ("job_id", "status")),
    ("workshop.part.attached", ("job_id", "item_id", "name", "qty", "price")),
    ("notification.message.pushed", ("notification_id", "user_id", "message", "timestamp")),
    ("notification.message.read", ("notification_id",)),
    ("ledger.transaction.recorded", (
        "transaction_id", "date", "total", "items", "type", "ref_code",
    )),
)

ENUM_PAYLOAD_FIELDS = (
    ("staff.user.registered", (("role", Role),)),
    ("inventory.item.created", (("dept", Dept),)),
    ("workshop.job.registered", (("dept", Dept), ("status", JobStatus))),
    ("workshop.job.assigned", (("status", JobStatus),)),
    ("workshop.job.status_changed", (("status", JobStatus),)),
    ("ledger.transaction.recorded", (("type", TransactionType),)),
)

TRANSACTION_LINE_KEYS = ("name", "qty", "price")


def _check_payload_shape(event_type: str, payload: dict) -> None:
    """Raise ValidationError for a missing key or an enum value the store cannot build."""
    for prefix, keys in REQUIRED_PAYLOAD_KEYS:
        if event_type.startswith(prefix):
            missing = [key for key in keys if key not in payload]
            if missing:
                raise ValidationError(
                    f"Event '{event_type}' is missing payload key(s): {missing}."
                )
            break

    for prefix, fields in ENUM_PAYLOAD_FIELDS:
        if event_type.startswith(prefix):
            for name, enum_cls in fields:
                _check_enum_value(event_type, name, enum_cls, payload[name])
            break

    if event_type.startswith("inventory.item.updated"):
        changes = payload.get("changes", {})
        unknown = set(changes) - ITEM_MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown item field(s): {sorted(unknown)}.")
        if "name" in changes and not changes["name"]:
            raise ValidationError("Item name must be non-empty.")
        if "dept" in changes:
            _check_enum_value(event_type, "dept", Dept, changes["dept"])

    elif event_type.startswith("ledger.transaction.recorded"):
        for line in payload["items"]:
            missing = [key for key in TRANSACTION_LINE_KEYS if key not in line]
            if missing:
                raise ValidationError(
                    f"Transaction line is missing key(s): {missing}."
                )


def _check_enum_value(event_type: str, name: str, enum_cls, value) -> None:
    try:
        enum_cls(value)
    except ValueError:
        allowed = sorted(m.value for m in enum_cls)
        raise ValidationError(
            f"Event '{event_type}' has invalid {name} '{value}'. "
            f"Must be one of: {allowed}"
        ) from None


class EntityStore:
    """
    In-memory entity store.

    Event families understood by apply():
        staff.user.registered / staff.mechanic.busy_marked / staff.mechanic.freed
        inventory.item.created / .updated / .deleted
        inventory.stock.decremented / .incremented
        workshop.job.registered / .assigned / .status_changed
        workshop.part.attached
        notification.message.pushed / .read
        ledger.transaction.recorded
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._events: List[dict] = []
        self._users: Dict[str, User] = {}
        self._items: Dict[str, InventoryItem] = {}
        self._jobs: Dict[str, ServiceJob] = {}
        self._notifications: Dict[str, Notification] = {}
        self._transactions: Dict[str, Transaction] = {}
        self._sequence = 0

    # ── Mutation ───────────────────────────────────────────────

    def apply(self, event_type: str, payload: dict) -> None:
        self.apply_batch([(event_type, payload)])

    def apply_batch(self, events: Sequence[Event]) -> None:
        events = list(events)
        if not events:
            return
        with self.lock:
            self._check_batch(events)
            for event_type, payload in events:
                self._apply_one(event_type, payload)
                self._events.append({"event_type": event_type, "payload": payload})
        logger.debug(f"Applied batch of {len(events)} event(s): "
                     f"{[event_type for event_type, _ in events]}")

    def _check_batch(self, events: Sequence[Event]) -> None:
        stock: Dict[str, Optional[int]] = {}
        new_jobs = set()
        new_users = set()
        new_notifications = set()

        def current_stock(item_id: str) -> Optional[int]:
            if item_id not in stock:
                item = self._items.get(item_id)
                stock[item_id] = item.stock if item is not None else None
            return stock[item_id]

        for event_type, payload in events:
            _check_payload_shape(event_type, payload)
            if event_type.startswith("inventory.item.created"):
                if not payload.get("name"):
                    raise ValidationError("Item name must be non-empty.")
                if payload["stock"] < 0:
                    raise ValidationError("Item stock must not be negative.")
                stock[payload["item_id"]] = payload["stock"]

            elif event_type.startswith("inventory.item.updated"):
                item_id = payload["item_id"]
                if current_stock(item_id) is None:
                    raise NotFoundError.for_entity("Inventory item", item_id)
                changes = payload.get("changes", {})
                if "stock" in changes:
                    if changes["stock"] < 0:
                        raise ValidationError("Item stock must not be negative.")
                    stock[item_id] = changes["stock"]

            elif event_type.startswith("inventory.item.deleted"):
                item_id = payload["item_id"]
                if current_stock(item_id) is None:
                    raise NotFoundError.for_entity("Inventory item", item_id)
                stock[item_id] = None

            elif event_type.startswith("inventory.stock.decremented"):
                item_id = payload["item_id"]
                available = current_stock(item_id)
                if available is None:
                    raise NotFoundError.for_entity("Inventory item", item_id)
                if payload["quantity"] > available:
                    raise InsufficientStockError.for_item(
                        item_id, available, payload["quantity"],
                        policy_name="stock_floor_check",
                    )
                stock[item_id] = available - payload["quantity"]

            elif event_type.startswith("inventory.stock.incremented"):
                item_id = payload["item_id"]
                available = current_stock(item_id)
                if available is None:
                    raise NotFoundError.for_entity("Inventory item", item_id)
                stock[item_id] = available + payload["quantity"]

            elif event_type.startswith("workshop.job.registered"):
                new_jobs.add(payload["job_id"])

            elif event_type.startswith("workshop."):
                job_id = payload["job_id"]
                if job_id not in self._jobs and job_id not in new_jobs:
                    raise NotFoundError.for_entity("Service job", job_id,
                                        code="JOB_NOT_FOUND")

            elif event_type.startswith("staff.user.registered"):
                new_users.add(payload["user_id"])

            elif event_type.startswith("staff.mechanic"):
                user_id = payload["user_id"]
                if user_id not in self._users and user_id not in new_users:
                    raise NotFoundError.for_entity("User", user_id, code="USER_NOT_FOUND")

            elif event_type.startswith("notification.message.pushed"):
                new_notifications.add(payload["notification_id"])

            elif event_type.startswith("notification.message.read"):
                nid = payload["notification_id"]
                if nid not in self._notifications and nid not in new_notifications:
                    raise NotFoundError.for_entity("Notification", nid)

            elif event_type.startswith("ledger.transaction.recorded"):
                if payload["transaction_id"] in self._transactions:
                    raise ValidationError(
                        f"Transaction '{payload['transaction_id']}' already recorded."
                    )

            else:
                raise ValidationError(f"Unknown event type '{event_type}'.")

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _apply_one(self, event_type: str, payload: dict) -> None:
        if event_type.startswith("staff.user.registered"):
            self._users[payload["user_id"]] = User(
                id=payload["user_id"],
                name=payload["name"],
                role=Role(payload["role"]),
                is_busy=bool(payload.get("is_busy", False)),
            )

        elif event_type.startswith("staff.mechanic.busy_marked"):
            self._users[payload["user_id"]].is_busy = True

        elif event_type.startswith("staff.mechanic.freed"):
            self._users[payload["user_id"]].is_busy = False

        elif event_type.startswith("inventory.item.created"):
            self._items[payload["item_id"]] = InventoryItem(
                id=payload["item_id"],
                name=payload["name"],
                dept=Dept(payload["dept"]),
                stock=payload["stock"],
                price=payload["price"],
                category=payload.get("category", ""),
            )

        elif event_type.startswith("inventory.item.updated"):
            item = self._items[payload["item_id"]]
            for name, value in payload.get("changes", {}).items():
                if name == "dept":
                    value = Dept(value)
                setattr(item, name, value)

        elif event_type.startswith("inventory.item.deleted"):
            del self._items[payload["item_id"]]

        elif event_type.startswith("inventory.stock.decremented"):
            self._items[payload["item_id"]].stock -= payload["quantity"]

        elif event_type.startswith("inventory.stock.incremented"):
            self._items[payload["item_id"]].stock += payload["quantity"]

        elif event_type.startswith("workshop.job.registered"):
            self._jobs[payload["job_id"]] = ServiceJob(
                id=payload["job_id"],
                unique_code=payload["unique_code"],
                owner_name=payload["owner_name"],
                plate_number=payload["plate_number"],
                vehicle_type=payload["vehicle_type"],
                dept=Dept(payload["dept"]),
                complaint=payload["complaint"],
                status=JobStatus(payload["status"]),
                entry_time=payload["entry_time"],
                mechanic_id=payload.get("mechanic_id"),
                mechanic_name=payload.get("mechanic_name"),
                cost_estimate=payload.get("cost_estimate", 0),
                pickup_note=payload.get("pickup_note", ""),
            )

        elif event_type.startswith("workshop.job.assigned"):
            job = self._jobs[payload["job_id"]]
            job.mechanic_id = payload["mechanic_id"]
            job.mechanic_name = payload["mechanic_name"]
            job.status = JobStatus(payload["status"])

        elif event_type.startswith("workshop.job.status_changed"):
            job = self._jobs[payload["job_id"]]
            job.status = JobStatus(payload["status"])
            job.pickup_note = payload.get("note", job.pickup_note)

        elif event_type.startswith("workshop.part.attached"):
            job = self._jobs[payload["job_id"]]
            job.parts_used = job.parts_used + (PartUsage(
                item_id=payload["item_id"],
                name=payload["name"],
                qty=payload["qty"],
                price=payload["price"],
            ),)

        elif event_type.startswith("notification.message.pushed"):
            self._notifications[payload["notification_id"]] = Notification(
                id=payload["notification_id"],
                user_id=payload["user_id"],
                message=payload["message"],
                timestamp=payload["timestamp"],
                read=False,
                sequence=self._next_sequence(),
            )

        elif event_type.startswith("notification.message.read"):
            self._notifications[payload["notification_id"]].read = True

        elif event_type.startswith("ledger.transaction.recorded"):
            self._transactions[payload["transaction_id"]] = Transaction(
                id=payload["transaction_id"],
                date=payload["date"],
                total=payload["total"],
                items=tuple(
                    TransactionLine(name=line["name"], qty=line["qty"],
                                    price=line["price"])
                    for line in payload["items"]
                ),
                type=TransactionType(payload["type"]),
                ref_code=payload["ref_code"],
                sequence=self._next_sequence(),
            )

    # ── Users ──────────────────────────────────────────────────

    def get_user(self, user_id: Optional[str]) -> Optional[User]:
        if user_id is None:
            return None
        return self._users.get(user_id)

    def list_users(self, role: Optional[Role] = None) -> List[User]:
        users = list(self._users.values())
        if role is not None:
            users = [u for u in users if u.role == role]
        return users

    # ── Inventory ──────────────────────────────────────────────

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        return self._items.get(item_id)

    def list_items(self) -> List[InventoryItem]:
        return list(self._items.values())

    # ── Jobs ───────────────────────────────────────────────────

    def get_job(self, job_id: str) -> Optional[ServiceJob]:
        return self._jobs.get(job_id)

    def list_jobs(self) -> List[ServiceJob]:
        return list(self._jobs.values())

    def find_job_by_code(self, unique_code: str) -> Optional[ServiceJob]:
        code = unique_code.upper()
        for job in self._jobs.values():
            if job.unique_code.upper() == code:
                return job
        return None

    def job_codes(self) -> frozenset:
        return frozenset(job.unique_code for job in self._jobs.values())

    # ── Notifications ──────────────────────────────────────────

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return self._notifications.get(notification_id)

    def list_notifications(self, user_id: Optional[str] = None) -> List[Notification]:
        notes = list(self._notifications.values())
        if user_id is not None:
            notes = [n for n in notes if n.user_id == user_id]
        return notes

    # ── Transactions ───────────────────────────────────────────

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    def list_transactions(self) -> List[Transaction]:
        return list(self._transactions.values())

    def transaction_codes(self) -> frozenset:
        return frozenset(t.ref_code for t in self._transactions.values())

    # ── Event log ──────────────────────────────────────────────

    def events(self, prefix: Optional[str] = None) -> Tuple[dict, ...]:
        if prefix is None:
            return tuple(self._events)
        return tuple(e for e in self._events if e["event_type"].startswith(prefix))

    @property
    def event_count(self) -> int:
        return len(self._events)
