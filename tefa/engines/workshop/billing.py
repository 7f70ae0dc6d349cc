"""
TEFA Workshop Engine — Billing
==============================
Pure functions over a ServiceJob. Part prices come from the
snapshots on the job, never from current inventory prices.
"""

from __future__ import annotations

from typing import List

from tefa.core.store import ServiceJob

LABOR_LINE_TEMPLATE = "Service Jasa ({code})"


def parts_total(job: ServiceJob) -> int:
    return sum(part.subtotal for part in job.parts_used)


def compute_total(job: ServiceJob, labor_fee: int) -> int:
    """Base labor fee plus every part snapshot."""
    return labor_fee + parts_total(job)


def service_lines(job: ServiceJob, labor_fee: int) -> List[dict]:
    """Receipt lines: the labor line first, then parts in attach order."""
    lines = [{
        "name": LABOR_LINE_TEMPLATE.format(code=job.unique_code),
        "qty": 1,
        "price": labor_fee,
    }]
    lines.extend(
        {"name": part.name, "qty": part.qty, "price": part.price}
        for part in job.parts_used
    )
    return lines
