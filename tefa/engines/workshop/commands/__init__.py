"""
TEFA Workshop Engine — Request Commands
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tefa.core.commands.base import SYSTEM_ACTOR_ID, Command, build_command
from tefa.core.errors import ValidationError
from tefa.core.store import Dept, JobStatus, coerce_enum

WORKSHOP_JOB_REGISTER_REQUEST = "workshop.job.register.request"
WORKSHOP_JOB_ASSIGN_REQUEST = "workshop.job.assign.request"
WORKSHOP_JOB_STATUS_REQUEST = "workshop.job.set_status.request"
WORKSHOP_PART_ATTACH_REQUEST = "workshop.part.attach.request"
WORKSHOP_JOB_BILL_REQUEST = "workshop.job.bill.request"
WORKSHOP_JOB_SETTLE_REQUEST = "workshop.job.settle.request"

WORKSHOP_COMMAND_TYPES = frozenset({
    WORKSHOP_JOB_REGISTER_REQUEST,
    WORKSHOP_JOB_ASSIGN_REQUEST,
    WORKSHOP_JOB_STATUS_REQUEST,
    WORKSHOP_PART_ATTACH_REQUEST,
    WORKSHOP_JOB_BILL_REQUEST,
    WORKSHOP_JOB_SETTLE_REQUEST,
})

DEFAULT_PICKUP_NOTE = "Dalam antrian"
SETTLED_PICKUP_NOTE = "Selesai & Lunas"


def _cmd(ct, payload, *, issued_at, actor_id=SYSTEM_ACTOR_ID):
    return build_command(ct, payload, issued_at=issued_at, actor_id=actor_id)


def _enum_value(enum_cls, value) -> str:
    try:
        return coerce_enum(enum_cls, value).value
    except ValueError as exc:
        raise ValidationError(str(exc)) from None


@dataclass(frozen=True)
class JobRegisterRequest:
    """
    Vehicle intake. owner/plate presence is checked by the caller;
    only dept is validated here. The plate is stored upper-cased.
    """
    job_id: str
    owner_name: str
    plate_number: str
    vehicle_type: str
    dept: str
    complaint: str = ""
    mechanic_id: Optional[str] = None

    def __post_init__(self):
        if not self.job_id:
            raise ValidationError("job_id must be non-empty.")
        object.__setattr__(self, "dept", _enum_value(Dept, self.dept))
        object.__setattr__(self, "plate_number", (self.plate_number or "").upper())

    def to_command(self, **kw) -> Command:
        return _cmd(WORKSHOP_JOB_REGISTER_REQUEST, {
            "job_id": self.job_id,
            "owner_name": self.owner_name or "",
            "plate_number": self.plate_number,
            "vehicle_type": self.vehicle_type or "",
            "dept": self.dept,
            "complaint": self.complaint or "",
            "mechanic_id": self.mechanic_id or None,
        }, **kw)


@dataclass(frozen=True)
class JobAssignRequest:
    job_id: str
    mechanic_id: str

    def __post_init__(self):
        if not self.job_id:
            raise ValidationError("job_id must be non-empty.")
        if not self.mechanic_id:
            raise ValidationError("mechanic_id must be non-empty.")

    def to_command(self, **kw) -> Command:
        return _cmd(WORKSHOP_JOB_ASSIGN_REQUEST, {
            "job_id": self.job_id, "mechanic_id": self.mechanic_id,
        }, **kw)


@dataclass(frozen=True)
class JobStatusRequest:
    job_id: str
    status: str
    note: str = ""

    def __post_init__(self):
        if not self.job_id:
            raise ValidationError("job_id must be non-empty.")
        object.__setattr__(self, "status", _enum_value(JobStatus, self.status))

    def to_command(self, **kw) -> Command:
        return _cmd(WORKSHOP_JOB_STATUS_REQUEST, {
            "job_id": self.job_id, "status": self.status, "note": self.note or "",
        }, **kw)


@dataclass(frozen=True)
class PartAttachRequest:
    job_id: str
    part_id: str

    def __post_init__(self):
        if not self.job_id:
            raise ValidationError("job_id must be non-empty.")
        if not self.part_id:
            raise ValidationError("part_id must be non-empty.")

    def to_command(self, **kw) -> Command:
        return _cmd(WORKSHOP_PART_ATTACH_REQUEST, {
            "job_id": self.job_id, "part_id": self.part_id,
        }, **kw)


@dataclass(frozen=True)
class JobBillRequest:
    """Record the Service transaction for a job. total=None → computed."""
    job_id: str
    total: Optional[int] = None

    def __post_init__(self):
        if not self.job_id:
            raise ValidationError("job_id must be non-empty.")
        if self.total is not None and (
            isinstance(self.total, bool) or not isinstance(self.total, int)
            or self.total < 0
        ):
            raise ValidationError("total must be a non-negative integer.")

    def to_command(self, **kw) -> Command:
        return _cmd(WORKSHOP_JOB_BILL_REQUEST, {
            "job_id": self.job_id, "total": self.total,
        }, **kw)


@dataclass(frozen=True)
class JobSettleRequest:
    """Bill the job and close it in one step."""
    job_id: str
    note: str = SETTLED_PICKUP_NOTE

    def __post_init__(self):
        if not self.job_id:
            raise ValidationError("job_id must be non-empty.")

    def to_command(self, **kw) -> Command:
        return _cmd(WORKSHOP_JOB_SETTLE_REQUEST, {
            "job_id": self.job_id, "note": self.note,
        }, **kw)
