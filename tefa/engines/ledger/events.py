"""
TEFA Ledger Engine — Event Types and Payload Builders
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

LEDGER_TRANSACTION_RECORDED_V1 = "ledger.transaction.recorded.v1"

LEDGER_EVENT_TYPES = (LEDGER_TRANSACTION_RECORDED_V1,)


def build_transaction_recorded_payload(
    *,
    transaction_id: str,
    date: datetime,
    total: int,
    items: Iterable[dict],
    type: str,
    ref_code: str,
) -> dict:
    return {
        "transaction_id": transaction_id,
        "date": date,
        "total": total,
        "items": [
            {"name": line["name"], "qty": line["qty"], "price": line["price"]}
            for line in items
        ],
        "type": type,
        "ref_code": ref_code,
    }
