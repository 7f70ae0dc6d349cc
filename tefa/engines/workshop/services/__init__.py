"""
TEFA Workshop Engine — Application Service (Job Lifecycle)
==========================================================
Owns the service-job state machine:

    pending → diagnosing → repairing → washing → ready → completed

Every operation builds its full event batch from current state and
publishes it with one EntityStore.apply_batch() call, so the
cross-entity effects travel together:

    register   job + mechanic busy + mechanic notification
    assign     job + previous mechanic freed + mechanic busy + notification
    set_status mechanic freed (ready/completed) + job status
    attach     stock decrement + part snapshot
    settle     mechanic freed + Service transaction + job completed

Unknown mechanics, closed jobs and out-of-stock parts are no-ops
(applied=False), not errors.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from tefa.config.settings import WorkshopSettings
from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command
from tefa.core.commands.bus import CommandBus
from tefa.core.commands.outcomes import ExecutionResult
from tefa.core.commands.rejection import ReasonCode, RejectionReason
from tefa.core.errors import error_for_rejection
from tefa.core.numbering import CodeGenerator, new_id
from tefa.core.store import (
    RELEASING_STATUSES,
    EntityStore,
    JobStatus,
    ServiceJob,
    Transaction,
    TransactionType,
    coerce_enum,
)
from tefa.core.time import Clock, SystemClock
from tefa.engines.inventory.events import (
    INVENTORY_STOCK_DECREMENTED_V1,
    build_stock_decremented_payload,
)
from tefa.engines.ledger.services import LedgerService
from tefa.engines.notification.services import NotificationService
from tefa.engines.staff.availability import MechanicAvailability
from tefa.engines.workshop.billing import compute_total, service_lines
from tefa.engines.workshop.commands import (
    DEFAULT_PICKUP_NOTE,
    SETTLED_PICKUP_NOTE,
    WORKSHOP_COMMAND_TYPES,
    WORKSHOP_JOB_ASSIGN_REQUEST,
    WORKSHOP_JOB_BILL_REQUEST,
    WORKSHOP_JOB_REGISTER_REQUEST,
    WORKSHOP_JOB_SETTLE_REQUEST,
    WORKSHOP_JOB_STATUS_REQUEST,
    WORKSHOP_PART_ATTACH_REQUEST,
    JobAssignRequest,
    JobBillRequest,
    JobRegisterRequest,
    JobSettleRequest,
    JobStatusRequest,
    PartAttachRequest,
)
from tefa.engines.workshop.events import (
    WORKSHOP_JOB_ASSIGNED_V1,
    WORKSHOP_JOB_REGISTERED_V1,
    WORKSHOP_JOB_STATUS_CHANGED_V1,
    WORKSHOP_PART_ATTACHED_V1,
    build_job_assigned_payload,
    build_job_registered_payload,
    build_job_status_changed_payload,
    build_part_attached_payload,
)
from tefa.engines.workshop.policies import (
    assignee_must_be_mechanic_policy,
    job_must_be_open_policy,
    job_must_exist_policy,
    part_must_be_in_stock_policy,
    status_transition_policy,
)

logger = logging.getLogger("tefa.workshop")

NEW_CUSTOMER_MESSAGE = "Pelanggan Baru: {plate} ({owner}) memilih Anda."
ASSIGNED_MESSAGE = "Anda ditugaskan untuk service ID: {code}."

JobRef = Union[str, ServiceJob]


def _job_id(job: JobRef) -> str:
    return job.id if isinstance(job, ServiceJob) else job


class _WorkshopCommandHandler:
    def __init__(self, service: "WorkshopService"):
        self._service = service

    def execute(self, command: Command) -> ExecutionResult:
        return self._service._execute_command(command)


class WorkshopService:

    def __init__(
        self,
        *,
        store: EntityStore,
        command_bus: CommandBus,
        mechanics: MechanicAvailability,
        notifications: NotificationService,
        ledger: LedgerService,
        settings: Optional[WorkshopSettings] = None,
        clock: Optional[Clock] = None,
        codes: Optional[CodeGenerator] = None,
    ):
        self._store = store
        self._command_bus = command_bus
        self._mechanics = mechanics
        self._notifications = notifications
        self._ledger = ledger
        self._settings = settings or WorkshopSettings()
        self._clock = clock or SystemClock()
        self._codes = codes or CodeGenerator()

        self._dispatch = {
            WORKSHOP_JOB_REGISTER_REQUEST: self._register,
            WORKSHOP_JOB_ASSIGN_REQUEST: self._assign,
            WORKSHOP_JOB_STATUS_REQUEST: self._set_status,
            WORKSHOP_PART_ATTACH_REQUEST: self._attach_part,
            WORKSHOP_JOB_BILL_REQUEST: self._bill,
            WORKSHOP_JOB_SETTLE_REQUEST: self._settle,
        }
        handler = _WorkshopCommandHandler(self)
        for command_type in sorted(WORKSHOP_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    @property
    def labor_fee(self) -> int:
        return self._settings.labor_fee

    # ── Command execution ──────────────────────────────────────

    def _execute_command(self, command: Command) -> ExecutionResult:
        step = self._dispatch.get(command.command_type)
        if step is None:
            raise ValueError(
                f"Unsupported workshop command type: {command.command_type}"
            )
        return step(command)

    def _publish(self, command: Command, events: list, value=None) -> ExecutionResult:
        events = [event for event in events if event is not None]
        self._store.apply_batch(events)
        logger.info(
            f"{command.command_type} published "
            f"{[event_type for event_type, _ in events]}"
        )
        return ExecutionResult(
            command_type=command.command_type,
            events=tuple(events),
            applied=True,
            value=value,
        )

    def _skip(self, command: Command, reason: RejectionReason,
              value=None) -> ExecutionResult:
        logger.debug(f"{command.command_type} skipped: {reason.message}")
        return ExecutionResult.noop(command.command_type, reason, value=value)

    def _register(self, command: Command) -> ExecutionResult:
        p = command.payload
        code = self._codes.service_code(
            self._settings.service_code_prefix, taken=self._store.job_codes(),
        )

        mechanic = None
        if p["mechanic_id"] and self._mechanics.is_mechanic_free(p["mechanic_id"]):
            mechanic = self._store.get_user(p["mechanic_id"])

        events = [(WORKSHOP_JOB_REGISTERED_V1, build_job_registered_payload(
            job_id=p["job_id"],
            unique_code=code,
            owner_name=p["owner_name"],
            plate_number=p["plate_number"],
            vehicle_type=p["vehicle_type"],
            dept=p["dept"],
            complaint=p["complaint"],
            status=(JobStatus.DIAGNOSING if mechanic else JobStatus.PENDING).value,
            mechanic_id=mechanic.id if mechanic else None,
            mechanic_name=mechanic.name if mechanic else None,
            entry_time=command.issued_at,
            pickup_note=DEFAULT_PICKUP_NOTE,
        ))]
        if mechanic is not None:
            events.append(self._mechanics.busy_event(mechanic.id))
            events.append(self._notifications.pushed_event(
                mechanic.id,
                NEW_CUSTOMER_MESSAGE.format(plate=p["plate_number"], owner=p["owner_name"]),
            ))
        elif p["mechanic_id"]:
            logger.info(
                f"Mechanic '{p['mechanic_id']}' not free; job {code} queued as pending"
            )
        return self._publish(command, events, value=code)

    def _holds_other_open_job(self, mechanic_id: str, job_id: str) -> bool:
        return any(
            other.id != job_id
            and other.mechanic_id == mechanic_id
            and other.status not in RELEASING_STATUSES
            for other in self._store.list_jobs()
        )

    def _assign(self, command: Command) -> ExecutionResult:
        reason = job_must_exist_policy(command, job_lookup=self._store.get_job)
        if reason is not None:
            raise error_for_rejection(reason)

        for reason in (
            assignee_must_be_mechanic_policy(command, user_lookup=self._store.get_user),
            job_must_be_open_policy(command, job_lookup=self._store.get_job),
        ):
            if reason is not None:
                return self._skip(command, reason)

        job = self._store.get_job(command.payload["job_id"])
        mechanic = self._store.get_user(command.payload["mechanic_id"])
        previous = job.mechanic_id

        events = []
        if (previous and previous != mechanic.id
                and job.status not in RELEASING_STATUSES
                and not self._holds_other_open_job(previous, job.id)):
            events.append(self._mechanics.free_event(previous))
        events.append((WORKSHOP_JOB_ASSIGNED_V1, build_job_assigned_payload(
            job_id=job.id,
            mechanic_id=mechanic.id,
            mechanic_name=mechanic.name,
            status=JobStatus.DIAGNOSING.value,
            previous_mechanic_id=previous,
        )))
        events.append(self._mechanics.busy_event(mechanic.id))
        events.append(self._notifications.pushed_event(
            mechanic.id, ASSIGNED_MESSAGE.format(code=job.unique_code),
        ))
        return self._publish(command, events, value=job.id)

    def _set_status(self, command: Command) -> ExecutionResult:
        job_lookup = self._store.get_job
        for reason in (
            job_must_exist_policy(command, job_lookup=job_lookup),
            job_must_be_open_policy(command, job_lookup=job_lookup),
            status_transition_policy(
                command, job_lookup=job_lookup,
                strict=self._settings.strict_transitions,
            ),
        ):
            if reason is not None:
                return self._skip(command, reason)

        job = job_lookup(command.payload["job_id"])
        status = JobStatus(command.payload["status"])

        events = []
        if status in RELEASING_STATUSES:
            events.append(self._mechanics.free_event(job.mechanic_id))
        events.append((WORKSHOP_JOB_STATUS_CHANGED_V1, build_job_status_changed_payload(
            job_id=job.id,
            status=status.value,
            previous_status=job.status.value,
            note=command.payload["note"],
            changed_at=command.issued_at,
        )))
        return self._publish(command, events, value=job.id)

    def _attach_part(self, command: Command) -> ExecutionResult:
        for reason in (
            job_must_exist_policy(command, job_lookup=self._store.get_job),
            job_must_be_open_policy(command, job_lookup=self._store.get_job),
            part_must_be_in_stock_policy(command, item_lookup=self._store.get_item),
        ):
            if reason is not None:
                return self._skip(command, reason, value=False)

        job = self._store.get_job(command.payload["job_id"])
        part = self._store.get_item(command.payload["part_id"])
        events = [
            (INVENTORY_STOCK_DECREMENTED_V1, build_stock_decremented_payload(
                item_id=part.id,
                quantity=1,
                reason="CONSUMPTION",
                reference_id=job.unique_code,
                occurred_at=command.issued_at,
            )),
            (WORKSHOP_PART_ATTACHED_V1, build_part_attached_payload(
                job_id=job.id,
                item_id=part.id,
                name=part.name,
                qty=1,
                price=part.price,
            )),
        ]
        return self._publish(command, events, value=True)

    def _service_transaction_event(self, job: ServiceJob, total: Optional[int],
                                   at) -> tuple:
        labor_fee = self._settings.labor_fee
        return self._ledger.recorded_event(
            type=TransactionType.SERVICE,
            ref_code=job.unique_code,
            items=service_lines(job, labor_fee),
            total=compute_total(job, labor_fee) if total is None else total,
            date=at,
        )

    def _bill(self, command: Command) -> ExecutionResult:
        reason = job_must_exist_policy(command, job_lookup=self._store.get_job)
        if reason is not None:
            raise error_for_rejection(reason)
        job = self._store.get_job(command.payload["job_id"])
        event = self._service_transaction_event(
            job, command.payload["total"], command.issued_at,
        )
        return self._publish(command, [event], value=event[1]["transaction_id"])

    def _settle(self, command: Command) -> ExecutionResult:
        reason = job_must_exist_policy(command, job_lookup=self._store.get_job)
        if reason is not None:
            raise error_for_rejection(reason)
        reason = job_must_be_open_policy(command, job_lookup=self._store.get_job)
        if reason is not None:
            return self._skip(command, reason)

        job = self._store.get_job(command.payload["job_id"])
        events = [
            self._mechanics.free_event(job.mechanic_id),
            self._service_transaction_event(job, None, command.issued_at),
            (WORKSHOP_JOB_STATUS_CHANGED_V1, build_job_status_changed_payload(
                job_id=job.id,
                status=JobStatus.COMPLETED.value,
                previous_status=job.status.value,
                note=command.payload["note"],
                changed_at=command.issued_at,
            )),
        ]
        return self._publish(command, events, value=job.unique_code)

    def _run(self, request, actor_id: str) -> ExecutionResult:
        command = request.to_command(
            issued_at=self._clock.now_utc(), actor_id=actor_id,
        )
        return self._command_bus.handle(command).unwrap()

    # ── Operations ─────────────────────────────────────────────

    def register(
        self,
        owner: str,
        plate: str,
        vehicle_type: str,
        dept,
        complaint: str = "",
        mechanic_id: Optional[str] = None,
        *,
        actor_id: str = SYSTEM_ACTOR_ID,
    ) -> str:
        """Take a vehicle in; returns the job's display code."""
        request = JobRegisterRequest(
            job_id=new_id(),
            owner_name=owner,
            plate_number=plate,
            vehicle_type=vehicle_type,
            dept=dept,
            complaint=complaint,
            mechanic_id=mechanic_id,
        )
        return self._run(request, actor_id).value

    def assign(self, job: JobRef, mechanic_id: str, *,
               actor_id: str = SYSTEM_ACTOR_ID) -> bool:
        """Attach mechanic_id to the job. False when nothing changed."""
        result = self._run(
            JobAssignRequest(job_id=_job_id(job), mechanic_id=mechanic_id), actor_id,
        )
        return result.applied

    def set_status(self, job: JobRef, status, note: str = "", *,
                   actor_id: str = SYSTEM_ACTOR_ID) -> bool:
        result = self._run(
            JobStatusRequest(job_id=_job_id(job), status=status, note=note), actor_id,
        )
        return result.applied

    def attach_part(self, job: JobRef, part_id: str, *,
                    actor_id: str = SYSTEM_ACTOR_ID) -> bool:
        """Consume one unit of part_id on the job. False leaves everything unchanged."""
        result = self._run(
            PartAttachRequest(job_id=_job_id(job), part_id=part_id), actor_id,
        )
        return result.value

    def compute_total(self, job: JobRef) -> int:
        if not isinstance(job, ServiceJob):
            job = self._require(job)
        return compute_total(job, self._settings.labor_fee)

    def complete(self, job: JobRef, total: Optional[int] = None, *,
                 actor_id: str = SYSTEM_ACTOR_ID) -> Transaction:
        """
        Record the Service transaction for the job.

        Does not touch the job status; set_status(job, completed) is a
        separate call. settle() does both together.
        """
        result = self._run(JobBillRequest(job_id=_job_id(job), total=total), actor_id)
        return self._store.get_transaction(result.value)

    def settle(self, job: JobRef, note: str = SETTLED_PICKUP_NOTE, *,
               actor_id: str = SYSTEM_ACTOR_ID) -> Optional[str]:
        """Bill and close the job; returns the ref code, None if already closed."""
        result = self._run(JobSettleRequest(job_id=_job_id(job), note=note), actor_id)
        return result.value if result.applied else None

    # ── Queries ────────────────────────────────────────────────

    def _require(self, job_id: str) -> ServiceJob:
        job = self._store.get_job(job_id)
        if job is None:
            raise error_for_rejection(RejectionReason(
                code=ReasonCode.JOB_NOT_FOUND,
                message=f"Service job '{job_id}' not found.",
                policy_name="job_must_exist_policy",
            ))
        return job

    def get(self, job_id: str) -> Optional[ServiceJob]:
        return self._store.get_job(job_id)

    def find_by_code(self, unique_code: str) -> Optional[ServiceJob]:
        return self._store.find_job_by_code(unique_code)

    def list_jobs(self, status=None) -> List[ServiceJob]:
        jobs = self._store.list_jobs()
        if status is not None:
            status = coerce_enum(JobStatus, status)
            jobs = [j for j in jobs if j.status == status]
        return jobs
