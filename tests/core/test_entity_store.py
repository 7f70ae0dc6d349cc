"""
Tests for tefa.core.store — EntityStore apply/apply_batch.
"""

from datetime import datetime, timezone

import pytest

from tefa.core.errors import InsufficientStockError, NotFoundError, ValidationError
from tefa.core.store import Dept, EntityStore, JobStatus, Role, TransactionType, coerce_enum

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _item(item_id="i1", stock=5, price=1000, name="Busi NGK"):
    return ("inventory.item.created.v1", {
        "item_id": item_id, "name": name, "dept": "TBSM",
        "stock": stock, "price": price, "category": "Sparepart",
    })


def _decrement(item_id="i1", quantity=1):
    return ("inventory.stock.decremented.v1", {
        "item_id": item_id, "quantity": quantity, "reason": "SALE",
        "reference_id": None, "decremented_at": NOW,
    })


def _user(user_id="u3", role="mechanic", is_busy=False):
    return ("staff.user.registered.v1", {
        "user_id": user_id, "name": "Ahmad", "role": role, "is_busy": is_busy,
    })


def _job(job_id="s1", code="SRV-1000"):
    return ("workshop.job.registered.v1", {
        "job_id": job_id, "unique_code": code, "owner_name": "Pak Joko",
        "plate_number": "AB 1234 XY", "vehicle_type": "Toyota Avanza",
        "dept": "TKRO", "complaint": "Rem bunyi", "status": "pending",
        "mechanic_id": None, "mechanic_name": None, "entry_time": NOW,
        "pickup_note": "Dalam antrian", "cost_estimate": 0,
    })


def _store(*events):
    store = EntityStore()
    store.apply_batch(events)
    return store


class TestApply:
    def test_creates_entities_with_enums(self):
        store = _store(_user(), _item(), _job())
        assert store.get_user("u3").role == Role.MECHANIC
        assert store.get_item("i1").dept == Dept.TBSM
        assert store.get_job("s1").status == JobStatus.PENDING

    def test_every_applied_event_is_logged(self):
        store = _store(_user(), _item())
        store.apply(*_decrement())
        assert store.event_count == 3
        assert [e["event_type"] for e in store.events("inventory.")] == [
            "inventory.item.created.v1", "inventory.stock.decremented.v1",
        ]

    def test_unknown_event_type_rejected(self):
        store = EntityStore()
        with pytest.raises(ValidationError, match="Unknown event type"):
            store.apply("workshop_legacy.thing.v1", {})

    def test_empty_batch_is_noop(self):
        store = EntityStore()
        store.apply_batch([])
        assert store.event_count == 0

    def test_insertion_order_preserved(self):
        store = _store(_item("i2"), _item("i1"), _item("i3"))
        assert [i.id for i in store.list_items()] == ["i2", "i1", "i3"]

    def test_item_update_merges_changes(self):
        store = _store(_item())
        store.apply("inventory.item.updated.v1", {
            "item_id": "i1", "changes": {"price": 1500, "dept": "FB"},
        })
        item = store.get_item("i1")
        assert item.price == 1500
        assert item.dept == Dept.FB
        assert item.name == "Busi NGK"


class TestBatchAtomicity:
    def test_stock_floor_checked_across_batch(self):
        store = _store(_item(stock=3))
        with pytest.raises(InsufficientStockError):
            store.apply_batch([_decrement(quantity=2), _decrement(quantity=2)])
        assert store.get_item("i1").stock == 3

    def test_rejected_batch_leaves_event_log_unchanged(self):
        store = _store(_item(stock=1))
        before = store.event_count
        with pytest.raises(InsufficientStockError):
            store.apply_batch([
                ("staff.user.registered.v1", _user()[1]),
                _decrement(quantity=5),
            ])
        assert store.event_count == before
        assert store.get_user("u3") is None

    def test_invalid_dept_rejects_batch_before_any_write(self):
        store = _store(_item(stock=5))
        bad_item = ("inventory.item.created.v1", dict(_item("i2")[1], dept="BODY"))
        with pytest.raises(ValidationError, match="dept"):
            store.apply_batch([_decrement(quantity=2), bad_item])
        assert store.get_item("i1").stock == 5
        assert store.get_item("i2") is None
        assert store.event_count == 1

    def test_invalid_status_rejects_batch_before_any_write(self):
        store = _store(_item(stock=5), _job())
        with pytest.raises(ValidationError, match="status"):
            store.apply_batch([
                _decrement(quantity=1),
                ("workshop.job.status_changed.v1", {"job_id": "s1", "status": "paid"}),
            ])
        assert store.get_item("i1").stock == 5
        assert store.get_job("s1").status == JobStatus.PENDING

    def test_invalid_role_and_transaction_type_rejected(self):
        store = EntityStore()
        with pytest.raises(ValidationError, match="role"):
            store.apply_batch([_item(), _user(role="owner")])
        with pytest.raises(ValidationError, match="type"):
            store.apply_batch([_item(), ("ledger.transaction.recorded.v1", {
                "transaction_id": "t1", "date": NOW, "total": 0, "items": [],
                "type": "Refund", "ref_code": "TRX-10001",
            })])
        assert store.list_items() == []
        assert store.event_count == 0

    def test_missing_payload_key_rejects_batch(self):
        store = _store(_item(stock=5))
        with pytest.raises(ValidationError, match="missing"):
            store.apply_batch([
                _decrement(quantity=1),
                ("workshop.part.attached.v1", {"job_id": "s1", "item_id": "i1"}),
            ])
        assert store.get_item("i1").stock == 5
        assert store.event_count == 1

    def test_invalid_dept_in_item_update_rejected(self):
        store = _store(_item())
        with pytest.raises(ValidationError):
            store.apply_batch([
                _decrement(),
                ("inventory.item.updated.v1", {"item_id": "i1", "changes": {"dept": "BODY"}}),
            ])
        item = store.get_item("i1")
        assert (item.stock, item.dept) == (5, Dept.TBSM)

    def test_unknown_job_reference_rejects_whole_batch(self):
        store = _store(_user())
        with pytest.raises(NotFoundError):
            store.apply_batch([
                ("staff.mechanic.busy_marked.v1", {"user_id": "u3"}),
                ("workshop.job.assigned.v1", {
                    "job_id": "ghost", "mechanic_id": "u3",
                    "mechanic_name": "Ahmad", "status": "diagnosing",
                }),
            ])
        assert store.get_user("u3").is_busy is False

    def test_job_created_earlier_in_batch_is_visible(self):
        store = _store(_user())
        store.apply_batch([
            _job(),
            ("workshop.job.assigned.v1", {
                "job_id": "s1", "mechanic_id": "u3",
                "mechanic_name": "Ahmad", "status": "diagnosing",
            }),
        ])
        assert store.get_job("s1").mechanic_id == "u3"

    def test_negative_initial_stock_rejected(self):
        with pytest.raises(ValidationError):
            _store(_item(stock=-1))

    def test_decrement_of_deleted_item_rejected(self):
        store = _store(_item())
        with pytest.raises(NotFoundError):
            store.apply_batch([
                ("inventory.item.deleted.v1", {"item_id": "i1"}),
                _decrement(),
            ])
        assert store.get_item("i1") is not None


class TestSnapshots:
    def test_part_snapshot_keeps_price(self):
        store = _store(_item(price=15_000), _job())
        store.apply("workshop.part.attached.v1", {
            "job_id": "s1", "item_id": "i1", "name": "Busi NGK", "qty": 1, "price": 15_000,
        })
        store.apply("inventory.item.updated.v1", {"item_id": "i1", "changes": {"price": 99_000}})
        assert store.get_job("s1").parts_used[0].price == 15_000

    def test_transactions_get_increasing_sequence(self):
        store = EntityStore()
        for n in (1, 2):
            store.apply("ledger.transaction.recorded.v1", {
                "transaction_id": f"t{n}", "date": NOW, "total": 5000,
                "items": [{"name": "Teh Botol", "qty": 1, "price": 5000}],
                "type": "Retail", "ref_code": f"TRX-1000{n}",
            })
        t1, t2 = store.get_transaction("t1"), store.get_transaction("t2")
        assert t1.type == TransactionType.RETAIL
        assert t2.sequence > t1.sequence
        assert store.transaction_codes() == frozenset({"TRX-10001", "TRX-10002"})

    def test_duplicate_transaction_id_rejected(self):
        store = EntityStore()
        payload = {
            "transaction_id": "t1", "date": NOW, "total": 0, "items": [],
            "type": "Retail", "ref_code": "TRX-10001",
        }
        store.apply("ledger.transaction.recorded.v1", payload)
        with pytest.raises(ValidationError):
            store.apply("ledger.transaction.recorded.v1", payload)


class TestLookups:
    def test_find_job_by_code_ignores_case(self):
        store = _store(_job(code="SRV-4321"))
        assert store.find_job_by_code("srv-4321").id == "s1"
        assert store.find_job_by_code("SRV-0000") is None

    def test_list_users_by_role(self):
        store = _store(_user("u3"), _user("u6", role="cashier"))
        assert [u.id for u in store.list_users(role=Role.CASHIER)] == ["u6"]

    def test_get_user_none(self):
        assert EntityStore().get_user(None) is None


class TestCoerceEnum:
    def test_member_and_exact_value(self):
        assert coerce_enum(Dept, Dept.FB) is Dept.FB
        assert coerce_enum(JobStatus, "ready") is JobStatus.READY

    def test_string_values_ignore_case(self):
        assert coerce_enum(Dept, "tkro") is Dept.TKRO
        assert coerce_enum(TransactionType, "service") is TransactionType.SERVICE
        assert coerce_enum(JobStatus, "Washing") is JobStatus.WASHING

    def test_unknown_value_lists_allowed(self):
        with pytest.raises(ValueError, match="not a valid Dept"):
            coerce_enum(Dept, "body")
