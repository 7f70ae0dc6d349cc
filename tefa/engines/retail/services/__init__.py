"""
TEFA Retail Engine — Application Service (Retail Checkout)
==========================================================
checkout() validates the whole cart against current stock, then
publishes one decrement per line together with the Retail
transaction in a single batch. A cart that does not fit leaves
stock and the ledger untouched.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tefa.config.settings import WorkshopSettings
from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command
from tefa.core.commands.bus import CommandBus
from tefa.core.commands.outcomes import ExecutionResult
from tefa.core.errors import error_for_rejection
from tefa.core.numbering import CodeGenerator
from tefa.core.store import EntityStore, TransactionType
from tefa.core.time import Clock, SystemClock
from tefa.engines.inventory.events import (
    INVENTORY_STOCK_DECREMENTED_V1,
    build_stock_decremented_payload,
)
from tefa.engines.ledger.services import LedgerService
from tefa.engines.retail.commands import (
    RETAIL_COMMAND_TYPES,
    RETAIL_SALE_CHECKOUT_REQUEST,
    CheckoutRequest,
    normalize_cart,
)
from tefa.engines.retail.policies import (
    cart_items_must_exist_policy,
    cart_stock_policy,
)

logger = logging.getLogger("tefa.retail")


class _RetailCommandHandler:
    def __init__(self, service: "RetailService"):
        self._service = service

    def execute(self, command: Command) -> ExecutionResult:
        return self._service._execute_command(command)


class RetailService:

    def __init__(
        self,
        *,
        store: EntityStore,
        command_bus: CommandBus,
        ledger: LedgerService,
        settings: Optional[WorkshopSettings] = None,
        clock: Optional[Clock] = None,
        codes: Optional[CodeGenerator] = None,
    ):
        self._store = store
        self._command_bus = command_bus
        self._ledger = ledger
        self._settings = settings or WorkshopSettings()
        self._clock = clock or SystemClock()
        self._codes = codes or CodeGenerator()
        handler = _RetailCommandHandler(self)
        for command_type in sorted(RETAIL_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def _stock_of(self, item_id: str) -> Optional[int]:
        item = self._store.get_item(item_id)
        return item.stock if item is not None else None

    def _execute_command(self, command: Command) -> ExecutionResult:
        if command.command_type != RETAIL_SALE_CHECKOUT_REQUEST:
            raise ValueError(
                f"Unsupported retail command type: {command.command_type}"
            )

        for reason in (
            cart_items_must_exist_policy(command, item_lookup=self._store.get_item),
            cart_stock_policy(command, stock_lookup=self._stock_of),
        ):
            if reason is not None:
                raise error_for_rejection(reason)

        ref_code = self._codes.retail_code(
            self._settings.retail_code_prefix,
            taken=self._store.transaction_codes(),
        )
        events = []
        receipt = []
        for line in command.payload["lines"]:
            item = self._store.get_item(line["item_id"])
            events.append((INVENTORY_STOCK_DECREMENTED_V1, build_stock_decremented_payload(
                item_id=item.id,
                quantity=line["qty"],
                reason="SALE",
                reference_id=ref_code,
                occurred_at=command.issued_at,
            )))
            receipt.append({"name": item.name, "qty": line["qty"], "price": item.price})

        events.append(self._ledger.recorded_event(
            type=TransactionType.RETAIL,
            ref_code=ref_code,
            items=receipt,
            date=command.issued_at,
        ))
        self._store.apply_batch(events)

        total = events[-1][1]["total"]
        logger.info(f"Checkout {ref_code}: {len(receipt)} line(s), total={total}")
        return ExecutionResult(
            command_type=command.command_type,
            events=tuple(events),
            applied=True,
            value=ref_code,
        )

    # ── Operations ─────────────────────────────────────────────

    def checkout(self, cart: Iterable, *,
                 actor_id: str = SYSTEM_ACTOR_ID) -> Optional[str]:
        """
        Sell the cart; returns the TRX ref code.

        An empty cart is a no-op returning None. Unknown items raise
        NotFoundError and shortfalls raise InsufficientStockError,
        both before anything changes.
        """
        lines = normalize_cart(cart)
        if not lines:
            logger.debug("Checkout skipped: empty cart")
            return None
        command = CheckoutRequest(lines=lines).to_command(
            issued_at=self._clock.now_utc(), actor_id=actor_id,
        )
        return self._command_bus.handle(command).unwrap().value

    # ── Queries ────────────────────────────────────────────────

    def cart_total(self, cart: Iterable) -> int:
        """Σ price × qty at current prices. Unknown items count as zero."""
        total = 0
        for item_id, qty in normalize_cart(cart):
            item = self._store.get_item(item_id)
            if item is not None:
                total += item.price * qty
        return total
