"""
TEFA Bootstrap — Seed Data
==========================
Initial staff, stock and two jobs already in the workshop, as the
school runs it at the start of a day. Applied as one batch.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Tuple

from tefa.engines.inventory.commands import ItemCreateRequest
from tefa.engines.inventory.events import (
    INVENTORY_ITEM_CREATED_V1,
    build_item_created_payload,
)
from tefa.engines.staff.events import (
    STAFF_USER_REGISTERED_V1,
    build_user_registered_payload,
)
from tefa.engines.workshop.events import (
    WORKSHOP_JOB_REGISTERED_V1,
    build_job_registered_payload,
)

SEED_USERS = (
    ("u1", "Super Admin", "admin", False),
    ("u2", "Budi (SA)", "sa", False),
    ("u3", "Ahmad (Mekanik 1)", "mechanic", False),
    ("u4", "Siti (Mekanik 2)", "mechanic", True),
    ("u5", "Rudi (Mekanik 3)", "mechanic", False),
    ("u6", "Lina (Kasir)", "cashier", False),
)

# id, name, dept, stock, price, category
SEED_ITEMS = (
    ("i1", "Oli Mesin 10W-40", "TKRO", 50, 65_000, "Oil"),
    ("i2", "Kampas Rem Avanza", "TKRO", 12, 250_000, "Sparepart"),
    ("i3", "Oli Matic Beat", "TBSM", 100, 45_000, "Oil"),
    ("i4", "Busi NGK", "TBSM", 200, 15_000, "Sparepart"),
    ("i5", "Teh Botol", "FB", 48, 5_000, "Drink"),
    ("i6", "Roti O", "FB", 20, 12_000, "Snack"),
)

SEED_JOBS = (
    {
        "job_id": "s1",
        "unique_code": "SRV-8821",
        "owner_name": "Pak Joko",
        "plate_number": "AB 1234 XY",
        "vehicle_type": "Toyota Avanza",
        "dept": "TKRO",
        "complaint": "Rem bunyi",
        "status": "repairing",
        "mechanic_id": "u4",
        "mechanic_name": "Siti (Mekanik 2)",
        "cost_estimate": 250_000,
        "pickup_note": "Estimasi selesai jam 2 siang",
    },
    {
        "job_id": "s2",
        "unique_code": "SRV-9901",
        "owner_name": "Mas Andi",
        "plate_number": "AB 5555 ZZ",
        "vehicle_type": "Honda Beat",
        "dept": "TBSM",
        "complaint": "Ganti Oli",
        "status": "pending",
        "mechanic_id": None,
        "mechanic_name": None,
        "cost_estimate": 45_000,
        "pickup_note": "Menunggu antrian",
    },
)


def seed_events(now: datetime) -> List[Tuple[str, dict]]:
    events = [
        (STAFF_USER_REGISTERED_V1, build_user_registered_payload(
            user_id=user_id, name=name, role=role, is_busy=is_busy,
        ))
        for user_id, name, role, is_busy in SEED_USERS
    ]
    for item_id, name, dept, stock, price, category in SEED_ITEMS:
        command = ItemCreateRequest(
            item_id=item_id, name=name, dept=dept,
            stock=stock, price=price, category=category,
        ).to_command(issued_at=now)
        events.append((INVENTORY_ITEM_CREATED_V1, build_item_created_payload(command)))
    for job in SEED_JOBS:
        events.append((WORKSHOP_JOB_REGISTERED_V1, build_job_registered_payload(
            entry_time=now, **job,
        )))
    return events
