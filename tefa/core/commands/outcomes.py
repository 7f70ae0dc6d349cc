"""
TEFA Command Layer — Execution Outcome
======================================
What an engine handler reports back after executing a command.

applied=True   → events were published to the store.
applied=False  → the command was a deliberate no-op (unknown mechanic,
                 terminal job, ...). `skipped` explains why.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from tefa.core.commands.rejection import RejectionReason


@dataclass(frozen=True)
class ExecutionResult:
    command_type: str
    events: Tuple[Tuple[str, dict], ...] = field(default=())
    applied: bool = False
    value: Any = None
    skipped: Optional[RejectionReason] = None

    def __post_init__(self):
        if self.applied and self.skipped is not None:
            raise ValueError("applied result must NOT carry a skip reason.")

    @classmethod
    def noop(cls, command_type: str, reason: RejectionReason,
             value: Any = None) -> "ExecutionResult":
        return cls(command_type=command_type, applied=False,
                   value=value, skipped=reason)

    @property
    def event_types(self) -> Tuple[str, ...]:
        return tuple(event_type for event_type, _ in self.events)
