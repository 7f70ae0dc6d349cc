"""
TEFA Ledger Engine — Application Service (Transaction Ledger)
=============================================================
Append-only. There is no update or delete; corrections would be
compensating entries.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command
from tefa.core.commands.bus import CommandBus
from tefa.core.commands.outcomes import ExecutionResult
from tefa.core.numbering import new_id
from tefa.core.store import EntityStore, Transaction, TransactionType, coerce_enum
from tefa.core.time import Clock, SystemClock
from tefa.engines.ledger.commands import (
    LEDGER_COMMAND_TYPES,
    TransactionRecordRequest,
    validate_lines,
)
from tefa.engines.ledger.events import (
    LEDGER_TRANSACTION_RECORDED_V1,
    build_transaction_recorded_payload,
)

logger = logging.getLogger("tefa.ledger")


class _LedgerCommandHandler:
    def __init__(self, service: "LedgerService"):
        self._service = service

    def execute(self, command: Command) -> ExecutionResult:
        return self._service._execute_command(command)


class LedgerService:

    def __init__(
        self,
        *,
        store: EntityStore,
        command_bus: CommandBus,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._command_bus = command_bus
        self._clock = clock or SystemClock()
        handler = _LedgerCommandHandler(self)
        for command_type in sorted(LEDGER_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def recorded_event(
        self,
        *,
        type,
        ref_code: str,
        items: Iterable[dict],
        total: Optional[int] = None,
        date: Optional[datetime] = None,
    ) -> tuple:
        """
        Event recording one transaction, for engines that batch the
        ledger write together with their own state changes.

        total defaults to Σ qty × price over the lines.
        """
        lines = validate_lines(items)
        if total is None:
            total = sum(line["qty"] * line["price"] for line in lines)
        return (LEDGER_TRANSACTION_RECORDED_V1, build_transaction_recorded_payload(
            transaction_id=new_id(),
            date=date or self._clock.now_utc(),
            total=total,
            items=lines,
            type=coerce_enum(TransactionType, type).value,
            ref_code=ref_code,
        ))

    def _execute_command(self, command: Command) -> ExecutionResult:
        payload = build_transaction_recorded_payload(**command.payload)
        self._store.apply(LEDGER_TRANSACTION_RECORDED_V1, payload)
        logger.info(
            f"Recorded {payload['type']} transaction {payload['ref_code']} "
            f"total={payload['total']}"
        )
        return ExecutionResult(
            command_type=command.command_type,
            events=((LEDGER_TRANSACTION_RECORDED_V1, payload),),
            applied=True,
            value=payload["transaction_id"],
        )

    # ── Operations ─────────────────────────────────────────────

    def record(self, transaction: Transaction, *,
               actor_id: str = SYSTEM_ACTOR_ID) -> Transaction:
        request = TransactionRecordRequest(
            transaction_id=transaction.id or new_id(),
            date=transaction.date,
            total=transaction.total,
            items=tuple(
                {"name": line.name, "qty": line.qty, "price": line.price}
                for line in transaction.items
            ),
            type=transaction.type,
            ref_code=transaction.ref_code,
        )
        command = request.to_command(issued_at=self._clock.now_utc(), actor_id=actor_id)
        transaction_id = self._command_bus.handle(command).unwrap().value
        return self._store.get_transaction(transaction_id)

    # ── Queries ────────────────────────────────────────────────

    def list_all(self) -> List[Transaction]:
        return sorted(
            self._store.list_transactions(),
            key=lambda t: (t.date, t.sequence),
            reverse=True,
        )

    def list_by_type(self, type) -> List[Transaction]:
        type = coerce_enum(TransactionType, type)
        return [t for t in self.list_all() if t.type == type]

    def find(self, ref_code: str) -> Optional[Transaction]:
        """Most recent transaction carrying ref_code."""
        code = ref_code.upper()
        return next((t for t in self.list_all() if t.ref_code.upper() == code), None)

    def revenue(self, type=None) -> int:
        transactions = self.list_all() if type is None else self.list_by_type(type)
        return sum(t.total for t in transactions)
