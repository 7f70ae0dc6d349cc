"""
TEFA Command Layer
==================
Every mutation begins as a Command, runs through the CommandBus
under the store lock, and yields a CommandResult.
"""

from tefa.core.commands.base import (
    Command,
    SYSTEM_ACTOR_ID,
    VALID_ACTOR_TYPES,
    build_command,
    derive_source_engine,
)
from tefa.core.commands.bus import (
    CommandBus,
    CommandBusError,
    CommandResult,
    DuplicateHandlerError,
    NoHandlerRegistered,
)
from tefa.core.commands.outcomes import ExecutionResult
from tefa.core.commands.rejection import ReasonCode, RejectionReason

__all__ = [
    # ── Base ──────────────────────────────────────────────────
    "Command",
    "SYSTEM_ACTOR_ID",
    "VALID_ACTOR_TYPES",
    "build_command",
    "derive_source_engine",
    # ── Outcomes ──────────────────────────────────────────────
    "ExecutionResult",
    # ── Rejection ─────────────────────────────────────────────
    "RejectionReason",
    "ReasonCode",
    # ── Bus ───────────────────────────────────────────────────
    "CommandBus",
    "CommandBusError",
    "CommandResult",
    "DuplicateHandlerError",
    "NoHandlerRegistered",
]
