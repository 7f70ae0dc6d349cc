"""
TEFA Command Layer — Command Base Contract
==========================================
Every mutation of the workshop begins as a Command.

A Command is a frozen declaration of intent. It carries identity,
actor and payload, nothing else.

Rules:
- Immutable once created (frozen dataclass)
- No business logic inside
- command_type must end with '.request'
- command_type follows engine.domain.action.request format
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


VALID_ACTOR_TYPES = frozenset({"HUMAN", "SYSTEM"})

SYSTEM_ACTOR_ID = "system"


@dataclass(frozen=True)
class Command:
    """
    Canonical workshop Command.

    Fields:
        command_id:     Unique identifier (UUID).
        command_type:   Namespaced type ending in '.request'
                        (e.g. 'inventory.stock.decrement.request').
        actor_type:     HUMAN | SYSTEM.
        actor_id:       Who issued the command (user id or 'system').
        payload:        Intent data (dict).
        issued_at:      When the command was issued.
        source_engine:  Engine that owns this command type.
        correlation_id: Groups related commands in one story.
    """

    command_id: uuid.UUID
    command_type: str
    actor_type: str
    actor_id: str
    payload: dict
    issued_at: datetime
    source_engine: str
    correlation_id: Optional[uuid.UUID] = field(default=None)

    def __post_init__(self):
        if not isinstance(self.command_id, uuid.UUID):
            raise ValueError(
                f"command_id must be UUID, got {type(self.command_id).__name__}"
            )

        if not self.command_type or not isinstance(self.command_type, str):
            raise ValueError("command_type must be a non-empty string.")

        if not self.command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{self.command_type}' must end with "
                f"'.request' (e.g. 'inventory.stock.decrement.request')."
            )

        parts = self.command_type.split(".")
        if len(parts) < 4:
            raise ValueError(
                f"command_type '{self.command_type}' must follow "
                f"engine.domain.action.request format (minimum 4 segments)."
            )

        if parts[0] != self.source_engine:
            raise ValueError(
                f"command_type namespace '{parts[0]}' does not match "
                f"source_engine '{self.source_engine}'."
            )

        if self.actor_type not in VALID_ACTOR_TYPES:
            raise ValueError(
                f"actor_type '{self.actor_type}' not valid. "
                f"Must be one of: {sorted(VALID_ACTOR_TYPES)}"
            )

        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

        if not isinstance(self.payload, dict):
            raise TypeError("payload must be a dict.")

        if not isinstance(self.issued_at, datetime):
            raise ValueError("issued_at must be a datetime.")


def derive_source_engine(command_type: str) -> str:
    """
    Extract source engine from command type.

    inventory.stock.decrement.request → inventory
    """
    return command_type.split(".")[0]


def build_command(
    command_type: str,
    payload: dict,
    *,
    issued_at: datetime,
    actor_id: str = SYSTEM_ACTOR_ID,
    actor_type: Optional[str] = None,
    correlation_id: Optional[uuid.UUID] = None,
) -> Command:
    """Shorthand used by request dataclasses' to_command()."""
    if actor_type is None:
        actor_type = "SYSTEM" if actor_id == SYSTEM_ACTOR_ID else "HUMAN"
    return Command(
        command_id=uuid.uuid4(),
        command_type=command_type,
        actor_type=actor_type,
        actor_id=actor_id,
        payload=payload,
        issued_at=issued_at,
        source_engine=derive_source_engine(command_type),
        correlation_id=correlation_id,
    )
