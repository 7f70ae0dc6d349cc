"""
TEFA Workshop Engine — Event Types and Payload Builders
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

WORKSHOP_JOB_REGISTERED_V1 = "workshop.job.registered.v1"
WORKSHOP_JOB_ASSIGNED_V1 = "workshop.job.assigned.v1"
WORKSHOP_JOB_STATUS_CHANGED_V1 = "workshop.job.status_changed.v1"
WORKSHOP_PART_ATTACHED_V1 = "workshop.part.attached.v1"


def build_job_registered_payload(
    *,
    job_id: str,
    unique_code: str,
    owner_name: str,
    plate_number: str,
    vehicle_type: str,
    dept: str,
    complaint: str,
    status: str,
    mechanic_id: Optional[str],
    mechanic_name: Optional[str],
    entry_time: datetime,
    pickup_note: str,
    cost_estimate: int = 0,
) -> dict:
    return {
        "job_id": job_id,
        "unique_code": unique_code,
        "owner_name": owner_name,
        "plate_number": plate_number,
        "vehicle_type": vehicle_type,
        "dept": dept,
        "complaint": complaint,
        "status": status,
        "mechanic_id": mechanic_id,
        "mechanic_name": mechanic_name,
        "entry_time": entry_time,
        "pickup_note": pickup_note,
        "cost_estimate": cost_estimate,
    }


def build_job_assigned_payload(*, job_id: str, mechanic_id: str,
                               mechanic_name: str, status: str,
                               previous_mechanic_id: Optional[str]) -> dict:
    return {
        "job_id": job_id,
        "mechanic_id": mechanic_id,
        "mechanic_name": mechanic_name,
        "status": status,
        "previous_mechanic_id": previous_mechanic_id,
    }


def build_job_status_changed_payload(*, job_id: str, status: str,
                                     previous_status: str, note: str,
                                     changed_at: datetime) -> dict:
    return {
        "job_id": job_id,
        "status": status,
        "previous_status": previous_status,
        "note": note,
        "changed_at": changed_at,
    }


def build_part_attached_payload(*, job_id: str, item_id: str, name: str,
                                qty: int, price: int) -> dict:
    return {
        "job_id": job_id,
        "item_id": item_id,
        "name": name,
        "qty": qty,
        "price": price,
    }
