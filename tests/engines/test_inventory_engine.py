"""TEFA Inventory Engine tests (Inventory Ledger)."""

import random
from datetime import datetime, timezone

import pytest

from tefa.config import WorkshopSettings
from tefa.core.bootstrap import build_workshop
from tefa.core.errors import InsufficientStockError, NotFoundError, ValidationError
from tefa.core.store import Dept
from tefa.core.time import FixedClock
from tefa.engines.inventory.commands import (
    ItemCreateRequest,
    ItemUpdateRequest,
    StockDecrementRequest,
)

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _workshop():
    return build_workshop(WorkshopSettings(), FixedClock(NOW), random.Random(5))


class TestInventoryCommands:
    def test_create_request_to_command(self):
        cmd = ItemCreateRequest(item_id="i9", name=" Aki GS ", dept="tkro",
                                stock=4, price=800_000).to_command(issued_at=NOW)
        assert cmd.command_type == "inventory.item.create.request"
        assert cmd.payload["name"] == "Aki GS"
        assert cmd.payload["dept"] == "TKRO"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError, match="name"):
            ItemCreateRequest(item_id="i9", name="  ", dept="TKRO")

    def test_unknown_dept_rejected(self):
        with pytest.raises(ValidationError, match="Dept"):
            ItemCreateRequest(item_id="i9", name="Aki", dept="OTO")

    def test_unknown_update_field_rejected(self):
        with pytest.raises(ValidationError, match="Unknown item field"):
            ItemUpdateRequest(item_id="i1", changes={"colour": "red"})

    def test_update_request_strips_name_and_normalizes_dept(self):
        cmd = ItemUpdateRequest(item_id="i1", changes={"name": "  Oli Mesin ", "dept": "fb"}
                                ).to_command(issued_at=NOW)
        assert cmd.payload["changes"] == {"name": "Oli Mesin", "dept": "FB"}

    def test_update_request_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="name"):
            ItemUpdateRequest(item_id="i1", changes={"name": "   "})

    @pytest.mark.parametrize("qty", [0, -2, 1.5, True])
    def test_quantity_must_be_positive_integer(self, qty):
        with pytest.raises(ValidationError):
            StockDecrementRequest(item_id="i1", quantity=qty)


class TestInventoryService:
    def test_create_and_get(self):
        ws = _workshop()
        item_id = ws.inventory.create("Aki GS", "TKRO", stock=4, price=800_000,
                                      category="Sparepart")
        item = ws.inventory.get(item_id)
        assert item.stock == 4
        assert item.dept == Dept.TKRO
        assert ws.store.list_items()[-1] is item

    def test_create_negative_price_rejected(self):
        ws = _workshop()
        with pytest.raises(ValidationError):
            ws.inventory.create("Aki", "TKRO", stock=1, price=-5)

    def test_update_merges_only_given_fields(self):
        ws = _workshop()
        item = ws.inventory.update("i5", price=6_000)
        assert item.price == 6_000
        assert item.stock == 48
        assert item.name == "Teh Botol"

    def test_update_unknown_item(self):
        ws = _workshop()
        with pytest.raises(NotFoundError):
            ws.inventory.update("i99", price=1)

    def test_delete(self):
        ws = _workshop()
        ws.inventory.delete("i6")
        assert ws.inventory.get("i6") is None
        with pytest.raises(NotFoundError):
            ws.inventory.delete("i6")

    def test_decrement_and_increment(self):
        ws = _workshop()
        assert ws.inventory.decrement("i2", 2) == 10
        assert ws.inventory.increment("i2", 5) == 15

    def test_decrement_beyond_stock_rejected_without_mutation(self):
        ws = _workshop()
        before = ws.store.event_count
        with pytest.raises(InsufficientStockError):
            ws.inventory.decrement("i2", 13)
        assert ws.inventory.get("i2").stock == 12
        assert ws.store.event_count == before

    def test_decrement_to_exactly_zero(self):
        ws = _workshop()
        assert ws.inventory.decrement("i6", 20) == 0

    def test_decrement_unknown_item(self):
        ws = _workshop()
        with pytest.raises(NotFoundError):
            ws.inventory.decrement("i99", 1)

    def test_list_items_by_dept(self):
        ws = _workshop()
        assert [i.id for i in ws.inventory.list_items(dept="FB")] == ["i5", "i6"]

    def test_stock_never_negative_over_sequence(self):
        ws = _workshop()
        rng = random.Random(19)
        for _ in range(200):
            qty = rng.randint(1, 4)
            try:
                ws.inventory.decrement("i6", qty)
            except InsufficientStockError:
                ws.inventory.increment("i6", 1)
            assert ws.inventory.get("i6").stock >= 0
