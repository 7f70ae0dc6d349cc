"""
TEFA Bootstrap — Store Integrity Checks
=======================================
Run once after seeding. Each check verifies one law of the store
and raises BootstrapError on the first violation.
"""

import logging

from tefa.core.bootstrap.errors import BootstrapError
from tefa.core.store import EntityStore

logger = logging.getLogger("tefa.bootstrap")


def check_stock_non_negative(store: EntityStore):
    for item in store.list_items():
        if item.stock < 0:
            raise BootstrapError(
                invariant="STOCK_NON_NEGATIVE",
                detail=f"Item '{item.id}' has stock {item.stock}.",
            )


def check_job_mechanics_resolve(store: EntityStore):
    for job in store.list_jobs():
        if job.mechanic_id is None:
            continue
        user = store.get_user(job.mechanic_id)
        if user is None or not user.is_mechanic:
            raise BootstrapError(
                invariant="JOB_MECHANIC_RESOLVES",
                detail=(
                    f"Job '{job.unique_code}' references '{job.mechanic_id}', "
                    f"which is not a mechanic."
                ),
            )


def check_job_codes_distinct(store: EntityStore):
    codes = [job.unique_code for job in store.list_jobs()]
    if len(codes) != len(set(codes)):
        raise BootstrapError(
            invariant="JOB_CODES_DISTINCT",
            detail="Two service jobs share a display code.",
        )


def run_store_checks(store: EntityStore):
    check_stock_non_negative(store)
    check_job_mechanics_resolve(store)
    check_job_codes_distinct(store)
    logger.info("Store integrity checks passed.")
