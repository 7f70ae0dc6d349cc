"""TEFA Workshop Engine tests (service-job lifecycle)."""

import random
import re
from datetime import datetime, timezone

import pytest

from tefa.config import WorkshopSettings
from tefa.core.bootstrap import build_workshop
from tefa.core.errors import NotFoundError, ValidationError
from tefa.core.store import JobStatus, TransactionType
from tefa.core.time import FixedClock
from tefa.engines.workshop.commands import (
    JobBillRequest,
    JobRegisterRequest,
    JobStatusRequest,
)
from tefa.engines.workshop.policies import ALLOWED_TRANSITIONS

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _workshop(**settings):
    return build_workshop(WorkshopSettings(**settings), FixedClock(NOW), random.Random(23))


def _messages(ws, user_id):
    return [n.message for n in ws.notifications.list_for(user_id)]


class TestWorkshopCommands:
    def test_register_request_uppercases_plate(self):
        req = JobRegisterRequest(job_id="j1", owner_name="Bu Sari",
                                 plate_number="ab 77 cd", vehicle_type="Vario",
                                 dept="tbsm")
        assert req.plate_number == "AB 77 CD"
        assert req.dept == "TBSM"

    def test_register_request_unknown_dept(self):
        with pytest.raises(ValidationError):
            JobRegisterRequest(job_id="j1", owner_name="x", plate_number="x",
                               vehicle_type="x", dept="BODY")

    def test_status_request_unknown_status(self):
        with pytest.raises(ValidationError):
            JobStatusRequest(job_id="s1", status="paid")

    def test_bill_request_negative_total(self):
        with pytest.raises(ValidationError):
            JobBillRequest(job_id="s1", total=-1)


class TestRegister:
    def test_with_free_mechanic(self):
        ws = _workshop()
        code = ws.workshop.register("Bu Sari", "ab 77 cd", "Honda Vario", "TBSM",
                                    "Tarikan berat", mechanic_id="u3")
        job = ws.workshop.find_by_code(code)
        assert re.fullmatch(r"SRV-\d{4}", code)
        assert job.status == JobStatus.DIAGNOSING
        assert job.mechanic_id == "u3"
        assert job.mechanic_name == "Ahmad (Mekanik 1)"
        assert job.plate_number == "AB 77 CD"
        assert job.pickup_note == "Dalam antrian"
        assert job.cost_estimate == 0
        assert job.entry_time == NOW
        assert ws.store.get_user("u3").is_busy is True
        assert _messages(ws, "u3") == ["Pelanggan Baru: AB 77 CD (Bu Sari) memilih Anda."]

    def test_with_busy_mechanic_queues_as_pending(self):
        ws = _workshop()
        code = ws.workshop.register("Bu Sari", "AB 77 CD", "Honda Vario", "TBSM",
                                    mechanic_id="u4")
        job = ws.workshop.find_by_code(code)
        assert job.status == JobStatus.PENDING
        assert job.mechanic_id is None
        assert job.mechanic_name is None
        assert _messages(ws, "u4") == []

    def test_with_non_mechanic_queues_as_pending(self):
        ws = _workshop()
        code = ws.workshop.register("Bu Sari", "AB 77 CD", "Vario", "TBSM",
                                    mechanic_id="u6")
        assert ws.workshop.find_by_code(code).status == JobStatus.PENDING
        assert ws.store.get_user("u6").is_busy is False

    def test_without_mechanic(self):
        ws = _workshop()
        code = ws.workshop.register("Pak Eko", "B 1 A", "Avanza", "TKRO")
        assert ws.workshop.find_by_code(code).status == JobStatus.PENDING

    def test_codes_distinct_across_many_registrations(self):
        ws = _workshop()
        codes = [ws.workshop.register("Owner", f"AB {n} X", "Beat", "TBSM")
                 for n in range(300)]
        assert len(set(codes)) == len(codes)
        assert "SRV-8821" not in codes
        assert "SRV-9901" not in codes

    def test_single_batch_for_job_busy_and_notification(self):
        ws = _workshop()
        req = JobRegisterRequest(job_id="j1", owner_name="Bu Sari",
                                 plate_number="AB 77 CD", vehicle_type="Vario",
                                 dept="TBSM", mechanic_id="u5")
        result = ws.bus.handle(req.to_command(issued_at=NOW)).unwrap()
        assert result.event_types == (
            "workshop.job.registered.v1",
            "staff.mechanic.busy_marked.v1",
            "notification.message.pushed.v1",
        )


class TestAssign:
    def test_assign_pending_job(self):
        ws = _workshop()
        assert ws.workshop.assign("s2", "u3") is True
        job = ws.workshop.get("s2")
        assert job.mechanic_id == "u3"
        assert job.status == JobStatus.DIAGNOSING
        assert ws.store.get_user("u3").is_busy is True
        assert _messages(ws, "u3") == ["Anda ditugaskan untuk service ID: SRV-9901."]

    def test_reassign_releases_previous_mechanic(self):
        ws = _workshop()
        assert ws.workshop.assign("s1", "u5") is True
        assert ws.store.get_user("u4").is_busy is False
        assert ws.store.get_user("u5").is_busy is True
        assert ws.workshop.get("s1").mechanic_name == "Rudi (Mekanik 3)"

    def test_reassign_keeps_mechanic_busy_while_holding_another_open_job(self):
        ws = _workshop()
        assert ws.workshop.assign("s2", "u4") is True
        assert ws.workshop.assign("s1", "u5") is True
        assert ws.store.get_user("u4").is_busy is True
        assert ws.workshop.assign("s2", "u3") is True
        assert ws.store.get_user("u4").is_busy is False

    def test_unknown_mechanic_is_noop(self):
        ws = _workshop()
        before = ws.store.event_count
        assert ws.workshop.assign("s2", "ghost") is False
        assert ws.workshop.get("s2").status == JobStatus.PENDING
        assert ws.store.event_count == before

    def test_non_mechanic_is_noop(self):
        ws = _workshop()
        assert ws.workshop.assign("s2", "u6") is False
        assert ws.workshop.get("s2").mechanic_id is None

    def test_unknown_job_raises(self):
        ws = _workshop()
        with pytest.raises(NotFoundError):
            ws.workshop.assign("nope", "u3")

    def test_completed_job_is_noop(self):
        ws = _workshop()
        ws.workshop.set_status("s2", "completed")
        assert ws.workshop.assign("s2", "u3") is False
        assert ws.store.get_user("u3").is_busy is False

    def test_accepts_job_object(self):
        ws = _workshop()
        assert ws.workshop.assign(ws.workshop.get("s2"), "u5") is True


class TestSetStatus:
    def test_updates_status_and_note(self):
        ws = _workshop()
        assert ws.workshop.set_status("s1", "washing", "Sedang dicuci") is True
        job = ws.workshop.get("s1")
        assert job.status == JobStatus.WASHING
        assert job.pickup_note == "Sedang dicuci"
        assert ws.store.get_user("u4").is_busy is True

    @pytest.mark.parametrize("status", ["ready", "completed"])
    def test_releasing_status_frees_mechanic(self, status):
        ws = _workshop()
        ws.workshop.set_status("s1", status, "Siap diambil")
        assert ws.store.get_user("u4").is_busy is False

    def test_release_travels_with_status_change(self):
        ws = _workshop()
        cmd = JobStatusRequest(job_id="s1", status="ready").to_command(issued_at=NOW)
        result = ws.bus.handle(cmd).unwrap()
        assert result.event_types == (
            "staff.mechanic.freed.v1",
            "workshop.job.status_changed.v1",
        )

    def test_unknown_job_is_noop(self):
        ws = _workshop()
        before = ws.store.event_count
        assert ws.workshop.set_status("ghost", "ready") is False
        assert ws.store.event_count == before

    def test_completed_is_terminal(self):
        ws = _workshop()
        ws.workshop.set_status("s1", "completed", "Selesai")
        assert ws.workshop.set_status("s1", "repairing") is False
        assert ws.workshop.get("s1").status == JobStatus.COMPLETED
        assert ws.workshop.get("s1").pickup_note == "Selesai"

    def test_free_form_by_default(self):
        ws = _workshop()
        assert ws.workshop.set_status("s2", "ready") is True

    def test_strict_table_blocks_skips(self):
        ws = _workshop(strict_transitions=True)
        assert ws.workshop.set_status("s2", "ready") is False
        assert ws.workshop.get("s2").status == JobStatus.PENDING
        assert ws.workshop.set_status("s2", "diagnosing") is True

    def test_transition_table_covers_every_status(self):
        assert set(ALLOWED_TRANSITIONS) == set(JobStatus)
        assert ALLOWED_TRANSITIONS[JobStatus.COMPLETED] == frozenset()


class TestAttachPart:
    def test_consumes_one_unit_and_snapshots_price(self):
        ws = _workshop()
        assert ws.workshop.attach_part("s1", "i2") is True
        assert ws.inventory.get("i2").stock == 11
        part = ws.workshop.get("s1").parts_used[0]
        assert (part.item_id, part.name, part.qty, part.price) == \
               ("i2", "Kampas Rem Avanza", 1, 250_000)

    def test_later_price_change_does_not_rewrite_cost(self):
        ws = _workshop()
        ws.workshop.attach_part("s1", "i2")
        total = ws.workshop.compute_total("s1")
        ws.inventory.update("i2", price=999_000)
        assert ws.workshop.compute_total("s1") == total == 300_000

    def test_out_of_stock_returns_false_without_mutation(self):
        ws = _workshop()
        ws.inventory.update("i1", stock=0)
        before = ws.store.event_count
        assert ws.workshop.attach_part("s1", "i1") is False
        assert ws.workshop.get("s1").parts_used == ()
        assert ws.inventory.get("i1").stock == 0
        assert ws.store.event_count == before

    def test_unknown_part_or_job_returns_false(self):
        ws = _workshop()
        assert ws.workshop.attach_part("s1", "i99") is False
        assert ws.workshop.attach_part("ghost", "i1") is False
        assert ws.inventory.get("i1").stock == 50

    def test_completed_job_returns_false(self):
        ws = _workshop()
        ws.workshop.set_status("s1", "completed")
        assert ws.workshop.attach_part("s1", "i2") is False
        assert ws.inventory.get("i2").stock == 12

    def test_last_unit(self):
        ws = _workshop()
        ws.inventory.update("i2", stock=1)
        assert ws.workshop.attach_part("s1", "i2") is True
        assert ws.workshop.attach_part("s1", "i2") is False
        assert ws.inventory.get("i2").stock == 0
        assert len(ws.workshop.get("s1").parts_used) == 1


class TestBilling:
    def test_compute_total_labor_only(self):
        assert _workshop().workshop.compute_total("s2") == 50_000

    def test_compute_total_uses_configured_fee(self):
        ws = _workshop(labor_fee=70_000)
        ws.workshop.attach_part("s2", "i3")
        assert ws.workshop.compute_total(ws.workshop.get("s2")) == 115_000

    def test_compute_total_unknown_job(self):
        with pytest.raises(NotFoundError):
            _workshop().workshop.compute_total("ghost")

    def test_complete_records_service_transaction(self):
        ws = _workshop()
        ws.workshop.attach_part("s2", "i3")
        ws.workshop.attach_part("s2", "i4")
        txn = ws.workshop.complete("s2")
        assert txn.type == TransactionType.SERVICE
        assert txn.ref_code == "SRV-9901"
        assert txn.total == 50_000 + 45_000 + 15_000
        assert [(line.name, line.qty, line.price) for line in txn.items] == [
            ("Service Jasa (SRV-9901)", 1, 50_000),
            ("Oli Matic Beat", 1, 45_000),
            ("Busi NGK", 1, 15_000),
        ]
        assert txn.date == NOW
        assert ws.workshop.get("s2").status == JobStatus.PENDING

    def test_complete_with_explicit_total(self):
        ws = _workshop()
        assert ws.workshop.complete("s2", total=40_000).total == 40_000

    def test_complete_unknown_job(self):
        with pytest.raises(NotFoundError):
            _workshop().workshop.complete("ghost")


class TestSettle:
    def test_settle_bills_closes_and_releases(self):
        ws = _workshop()
        ws.workshop.attach_part("s1", "i2")
        ref = ws.workshop.settle("s1")
        job = ws.workshop.get("s1")
        assert ref == "SRV-8821"
        assert job.status == JobStatus.COMPLETED
        assert job.pickup_note == "Selesai & Lunas"
        assert ws.store.get_user("u4").is_busy is False
        assert ws.ledger.find("SRV-8821").total == 300_000

    def test_settle_twice_records_once(self):
        ws = _workshop()
        ws.workshop.settle("s1")
        assert ws.workshop.settle("s1") is None
        assert len(ws.ledger.list_by_type("Service")) == 1

    def test_settle_unknown_job(self):
        with pytest.raises(NotFoundError):
            _workshop().workshop.settle("ghost")


class TestQueries:
    def test_list_jobs_by_status(self):
        ws = _workshop()
        assert [j.id for j in ws.workshop.list_jobs()] == ["s1", "s2"]
        assert [j.id for j in ws.workshop.list_jobs(status="pending")] == ["s2"]

    def test_find_by_code_case_insensitive(self):
        assert _workshop().workshop.find_by_code("srv-8821").id == "s1"
