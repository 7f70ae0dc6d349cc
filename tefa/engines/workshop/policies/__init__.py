"""
TEFA Workshop Engine — Policies
===============================
Status progression is free-form by default: any open job can move to
any status. With strict transitions enabled, ALLOWED_TRANSITIONS
decides. A completed job never moves again.
"""

from __future__ import annotations

from typing import Optional

from tefa.core.commands.base import Command
from tefa.core.commands.rejection import ReasonCode, RejectionReason
from tefa.core.store import JobStatus

ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: frozenset({JobStatus.DIAGNOSING}),
    JobStatus.DIAGNOSING: frozenset({
        JobStatus.PENDING, JobStatus.REPAIRING, JobStatus.WASHING, JobStatus.READY,
    }),
    JobStatus.REPAIRING: frozenset({
        JobStatus.DIAGNOSING, JobStatus.WASHING, JobStatus.READY,
    }),
    JobStatus.WASHING: frozenset({JobStatus.REPAIRING, JobStatus.READY}),
    JobStatus.READY: frozenset({JobStatus.REPAIRING, JobStatus.COMPLETED}),
    JobStatus.COMPLETED: frozenset(),
}


def job_must_exist_policy(
    command: Command, job_lookup=None,
) -> Optional[RejectionReason]:
    if job_lookup is None:
        return None
    if command.command_type == "workshop.job.register.request":
        return None
    job_id = command.payload.get("job_id")
    if job_lookup(job_id) is None:
        return RejectionReason(
            code=ReasonCode.JOB_NOT_FOUND,
            message=f"Service job '{job_id}' not found.",
            policy_name="job_must_exist_policy")
    return None


def job_must_be_open_policy(
    command: Command, job_lookup=None,
) -> Optional[RejectionReason]:
    if job_lookup is None:
        return None
    job = job_lookup(command.payload.get("job_id"))
    if job is None or not job.is_closed:
        return None
    return RejectionReason(
        code=ReasonCode.JOB_CLOSED,
        message=f"Service job '{job.unique_code}' is completed.",
        policy_name="job_must_be_open_policy")


def status_transition_policy(
    command: Command, job_lookup=None, strict: bool = False,
) -> Optional[RejectionReason]:
    if job_lookup is None or not strict:
        return None
    if command.command_type != "workshop.job.set_status.request":
        return None
    job = job_lookup(command.payload.get("job_id"))
    if job is None:
        return None
    target = JobStatus(command.payload["status"])
    if target == job.status or target in ALLOWED_TRANSITIONS[job.status]:
        return None
    return RejectionReason(
        code=ReasonCode.TRANSITION_NOT_ALLOWED,
        message=(
            f"Service job '{job.unique_code}' cannot move from "
            f"{job.status.value} to {target.value}."
        ),
        policy_name="status_transition_policy")


def part_must_be_in_stock_policy(
    command: Command, item_lookup=None,
) -> Optional[RejectionReason]:
    if item_lookup is None:
        return None
    if command.command_type != "workshop.part.attach.request":
        return None
    part_id = command.payload.get("part_id")
    part = item_lookup(part_id)
    if part is None:
        return RejectionReason(
            code=ReasonCode.ITEM_NOT_FOUND,
            message=f"Part '{part_id}' not found.",
            policy_name="part_must_be_in_stock_policy")
    if part.stock <= 0:
        return RejectionReason(
            code=ReasonCode.OUT_OF_STOCK,
            message=f"Part '{part.name}' is out of stock.",
            policy_name="part_must_be_in_stock_policy")
    return None


def assignee_must_be_mechanic_policy(
    command: Command, user_lookup=None,
) -> Optional[RejectionReason]:
    """assign() to an unknown user or a non-mechanic is a silent no-op."""
    if user_lookup is None:
        return None
    if command.command_type != "workshop.job.assign.request":
        return None
    mechanic_id = command.payload.get("mechanic_id")
    user = user_lookup(mechanic_id)
    if user is None:
        return RejectionReason(
            code=ReasonCode.USER_NOT_FOUND,
            message=f"User '{mechanic_id}' not found.",
            policy_name="assignee_must_be_mechanic_policy")
    if not user.is_mechanic:
        return RejectionReason(
            code=ReasonCode.MECHANIC_UNAVAILABLE,
            message=f"User '{mechanic_id}' is not a mechanic.",
            policy_name="assignee_must_be_mechanic_policy")
    return None
