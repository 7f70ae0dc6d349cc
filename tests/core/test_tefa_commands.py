"""
Tests for tefa.core.commands — Command model, CommandBus, rejections
and the error taxonomy.
"""

import threading
import uuid
from datetime import datetime, timezone

import pytest

from tefa.core.commands import (
    SYSTEM_ACTOR_ID,
    Command,
    CommandBus,
    DuplicateHandlerError,
    ExecutionResult,
    NoHandlerRegistered,
    ReasonCode,
    RejectionReason,
    build_command,
    derive_source_engine,
)
from tefa.core.errors import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    WorkshopError,
    error_for_rejection,
)

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def _command(command_type="inventory.stock.decrement.request", **overrides):
    fields = dict(
        command_id=uuid.uuid4(),
        command_type=command_type,
        actor_type="HUMAN",
        actor_id="u2",
        payload={"item_id": "i1"},
        issued_at=NOW,
        source_engine=derive_source_engine(command_type),
    )
    fields.update(overrides)
    return Command(**fields)


class RecordingHandler:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def execute(self, command):
        self.calls.append(command)
        if self.error is not None:
            raise self.error
        return self.result


# ── Command ──────────────────────────────────────────────────

class TestCommand:
    def test_valid_command(self):
        cmd = _command()
        assert cmd.source_engine == "inventory"

    def test_must_end_with_request(self):
        with pytest.raises(ValueError, match=r"\.request"):
            _command(command_type="inventory.stock.decrement",
                     source_engine="inventory")

    def test_needs_four_segments(self):
        with pytest.raises(ValueError, match="4 segments"):
            _command(command_type="inventory.decrement.request")

    def test_namespace_must_match_source_engine(self):
        with pytest.raises(ValueError, match="does not match"):
            _command(source_engine="retail")

    def test_actor_type_validated(self):
        with pytest.raises(ValueError, match="actor_type"):
            _command(actor_type="ROBOT")

    def test_payload_must_be_dict(self):
        with pytest.raises(TypeError):
            _command(payload=["i1"])

    def test_frozen(self):
        cmd = _command()
        with pytest.raises(AttributeError):
            cmd.actor_id = "u1"


class TestBuildCommand:
    def test_system_actor_by_default(self):
        cmd = build_command("workshop.job.assign.request", {}, issued_at=NOW)
        assert cmd.actor_id == SYSTEM_ACTOR_ID
        assert cmd.actor_type == "SYSTEM"
        assert cmd.source_engine == "workshop"

    def test_named_actor_is_human(self):
        cmd = build_command("workshop.job.assign.request", {},
                            issued_at=NOW, actor_id="u2")
        assert cmd.actor_type == "HUMAN"

    def test_unique_command_ids(self):
        a = build_command("retail.sale.checkout.request", {}, issued_at=NOW)
        b = build_command("retail.sale.checkout.request", {}, issued_at=NOW)
        assert a.command_id != b.command_id


# ── Rejection / errors ───────────────────────────────────────

class TestRejectionReason:
    def test_to_dict(self):
        reason = RejectionReason(code="X", message="nope", policy_name="p")
        assert reason.to_dict() == {"code": "X", "message": "nope", "policy_name": "p"}

    def test_empty_message_rejected(self):
        with pytest.raises(ValueError):
            RejectionReason(code="X", message="", policy_name="p")


class TestErrorTaxonomy:
    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)
        assert issubclass(ValidationError, WorkshopError)

    def test_not_found_is_lookup_error(self):
        err = NotFoundError.for_entity("Inventory item", "i9")
        assert isinstance(err, LookupError)
        assert "i9" in str(err)
        assert err.code == ReasonCode.ITEM_NOT_FOUND

    def test_insufficient_stock_message(self):
        err = InsufficientStockError.for_item("i2", available=1, requested=3)
        assert "1 available" in str(err)
        assert "3 requested" in str(err)

    def test_to_rejection_roundtrip(self):
        err = NotFoundError.for_entity("Service job", "s9",
                                       code=ReasonCode.JOB_NOT_FOUND,
                                       policy_name="job_must_exist_policy")
        reason = err.to_rejection()
        assert reason.code == ReasonCode.JOB_NOT_FOUND
        assert reason.policy_name == "job_must_exist_policy"

    @pytest.mark.parametrize("code, error_cls", [
        (ReasonCode.ITEM_NOT_FOUND, NotFoundError),
        (ReasonCode.JOB_NOT_FOUND, NotFoundError),
        (ReasonCode.INSUFFICIENT_STOCK, InsufficientStockError),
        (ReasonCode.VALIDATION_FAILED, ValidationError),
        (ReasonCode.TRANSITION_NOT_ALLOWED, ValidationError),
    ])
    def test_error_for_rejection(self, code, error_cls):
        err = error_for_rejection(RejectionReason(code=code, message="m", policy_name="p"))
        assert type(err) is error_cls
        assert err.code == code


# ── CommandBus ───────────────────────────────────────────────

class TestCommandBus:
    def test_duplicate_handler_rejected(self):
        bus = CommandBus()
        bus.register_handler("inventory.stock.decrement.request", RecordingHandler())
        with pytest.raises(DuplicateHandlerError):
            bus.register_handler("inventory.stock.decrement.request", RecordingHandler())

    def test_unregistered_type_raises(self):
        with pytest.raises(NoHandlerRegistered):
            CommandBus().handle(_command())

    def test_accepted_result(self):
        outcome = ExecutionResult(command_type="inventory.stock.decrement.request",
                                  applied=True, value=7)
        handler = RecordingHandler(result=outcome)
        bus = CommandBus()
        bus.register_handler("inventory.stock.decrement.request", handler)

        result = bus.handle(_command())
        assert result.is_accepted
        assert result.unwrap().value == 7
        assert len(handler.calls) == 1

    def test_workshop_error_becomes_rejection(self):
        err = InsufficientStockError.for_item("i1", 0, 1)
        bus = CommandBus()
        bus.register_handler("inventory.stock.decrement.request",
                             RecordingHandler(error=err))

        result = bus.handle(_command())
        assert result.is_rejected
        assert result.rejection.code == ReasonCode.INSUFFICIENT_STOCK
        with pytest.raises(InsufficientStockError):
            result.unwrap()

    def test_programming_errors_propagate(self):
        bus = CommandBus()
        bus.register_handler("inventory.stock.decrement.request",
                             RecordingHandler(error=KeyError("payload")))
        with pytest.raises(KeyError):
            bus.handle(_command())

    def test_handler_runs_under_shared_lock(self):
        lock = threading.RLock()
        bus = CommandBus(lock=lock)
        seen = {}

        class LockProbe:
            def execute(self, command):
                seen["owned"] = lock._is_owned()
                return None

        bus.register_handler("inventory.stock.decrement.request", LockProbe())
        bus.handle(_command())
        assert seen["owned"] is True

    def test_registered_types(self):
        bus = CommandBus()
        bus.register_handler("retail.sale.checkout.request", RecordingHandler())
        assert bus.has_handler("retail.sale.checkout.request")
        assert bus.registered_types == frozenset({"retail.sale.checkout.request"})


class TestExecutionResult:
    def test_noop_carries_reason(self):
        reason = RejectionReason(code=ReasonCode.JOB_CLOSED, message="closed",
                                 policy_name="job_must_be_open_policy")
        result = ExecutionResult.noop("workshop.job.set_status.request", reason)
        assert result.applied is False
        assert result.skipped is reason
        assert result.event_types == ()

    def test_applied_result_cannot_be_skipped(self):
        reason = RejectionReason(code="X", message="m", policy_name="p")
        with pytest.raises(ValueError):
            ExecutionResult(command_type="a.b.c.request", applied=True, skipped=reason)
