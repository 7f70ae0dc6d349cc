"""
TEFA Ledger Engine — Request Commands
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command, build_command
from tefa.core.errors import ValidationError
from tefa.core.store import TransactionType, coerce_enum

LEDGER_TRANSACTION_RECORD_REQUEST = "ledger.transaction.record.request"

LEDGER_COMMAND_TYPES = frozenset({LEDGER_TRANSACTION_RECORD_REQUEST})


def validate_lines(items) -> Tuple[dict, ...]:
    lines = []
    for line in items:
        name, qty, price = line["name"], line["qty"], line["price"]
        if not name:
            raise ValidationError("transaction line name must be non-empty.")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError("transaction line qty must be positive integer.")
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise ValidationError("transaction line price must be non-negative integer.")
        lines.append({"name": name, "qty": qty, "price": price})
    return tuple(lines)


@dataclass(frozen=True)
class TransactionRecordRequest:
    transaction_id: str
    date: datetime
    total: int
    items: tuple
    type: str
    ref_code: str

    def __post_init__(self):
        if not self.transaction_id:
            raise ValidationError("transaction_id must be non-empty.")
        if not isinstance(self.date, datetime):
            raise ValidationError("date must be a datetime.")
        if isinstance(self.total, bool) or not isinstance(self.total, int) or self.total < 0:
            raise ValidationError("total must be a non-negative integer.")
        try:
            object.__setattr__(self, "type", coerce_enum(TransactionType, self.type).value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from None
        if not self.ref_code:
            raise ValidationError("ref_code must be non-empty.")
        object.__setattr__(self, "items", validate_lines(self.items))

    def to_command(self, *, issued_at: datetime,
                   actor_id: str = SYSTEM_ACTOR_ID) -> Command:
        return build_command(LEDGER_TRANSACTION_RECORD_REQUEST, {
            "transaction_id": self.transaction_id,
            "date": self.date,
            "total": self.total,
            "items": [dict(line) for line in self.items],
            "type": self.type,
            "ref_code": self.ref_code,
        }, issued_at=issued_at, actor_id=actor_id)
