"""
TEFA Command Layer — Rejection Model
====================================
Structured rejection reasons for denied commands.

A RejectionReason is not an exception. It is the explanation that
travels back to the caller inside a CommandResult.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for command rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'INSUFFICIENT_STOCK').
        message:     Human-readable explanation.
        policy_name: Name of the policy or check that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Validation ────────────────────────────────────────────
    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_COMMAND_TYPE = "INVALID_COMMAND_TYPE"

    # ── Lookup ────────────────────────────────────────────────
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    JOB_NOT_FOUND = "JOB_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # ── Stock ─────────────────────────────────────────────────
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"

    # ── Job lifecycle ─────────────────────────────────────────
    JOB_CLOSED = "JOB_CLOSED"
    TRANSITION_NOT_ALLOWED = "TRANSITION_NOT_ALLOWED"
    MECHANIC_UNAVAILABLE = "MECHANIC_UNAVAILABLE"
