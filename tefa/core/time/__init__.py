"""
TEFA Core Time — Public API
===========================
Injectable clock. Engine logic never calls datetime.now() directly.
"""

from tefa.core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
]
