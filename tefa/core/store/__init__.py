"""
TEFA Entity Store — Public API
"""

from tefa.core.store.entities import (
    Dept,
    IN_PROGRESS_STATUSES,
    InventoryItem,
    JobStatus,
    Notification,
    PartUsage,
    RELEASING_STATUSES,
    Role,
    ServiceJob,
    TERMINAL_STATUSES,
    Transaction,
    TransactionLine,
    TransactionType,
    User,
    coerce_enum,
)
from tefa.core.store.entity_store import ITEM_MUTABLE_FIELDS, EntityStore

__all__ = [
    "Dept",
    "EntityStore",
    "IN_PROGRESS_STATUSES",
    "ITEM_MUTABLE_FIELDS",
    "InventoryItem",
    "JobStatus",
    "Notification",
    "PartUsage",
    "RELEASING_STATUSES",
    "Role",
    "ServiceJob",
    "TERMINAL_STATUSES",
    "Transaction",
    "TransactionLine",
    "TransactionType",
    "User",
    "coerce_enum",
]
