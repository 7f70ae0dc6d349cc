"""
TEFA Bootstrap
==============
Seed data, startup integrity checks and the build_workshop() factory.
"""

from tefa.core.bootstrap.errors import BootstrapError
from tefa.core.bootstrap.invariants import run_store_checks
from tefa.core.bootstrap.seed import seed_events
from tefa.core.bootstrap.wiring import Workshop, build_workshop

__all__ = [
    "BootstrapError",
    "Workshop",
    "build_workshop",
    "run_store_checks",
    "seed_events",
]
