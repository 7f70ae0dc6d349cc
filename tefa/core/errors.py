"""
TEFA Core — Error Taxonomy
==========================
Local, recoverable domain errors. None of these is fatal to the
process; the CommandBus converts them into rejected CommandResults.

Policies report problems as RejectionReason values; services turn a
reason into the matching exception with error_for_rejection().
"""

from __future__ import annotations

from typing import Optional

from tefa.core.commands.rejection import ReasonCode, RejectionReason


class WorkshopError(Exception):
    """Base error for workshop domain operations."""

    code = ReasonCode.VALIDATION_FAILED

    def __init__(self, message: str, *, code: Optional[str] = None,
                 policy_name: str = "domain"):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.policy_name = policy_name

    def to_rejection(self) -> RejectionReason:
        return RejectionReason(
            code=self.code,
            message=self.message,
            policy_name=self.policy_name,
        )


class ValidationError(WorkshopError, ValueError):
    """A required field is missing or a value breaks an entity invariant."""

    code = ReasonCode.VALIDATION_FAILED


class NotFoundError(WorkshopError, LookupError):
    """An id passed to an operation does not resolve."""

    code = ReasonCode.ITEM_NOT_FOUND

    @classmethod
    def for_entity(cls, entity: str, entity_id: str, **kw) -> "NotFoundError":
        return cls(f"{entity} '{entity_id}' not found.", **kw)


class InsufficientStockError(WorkshopError):
    """A decrement asks for more units than are on hand."""

    code = ReasonCode.INSUFFICIENT_STOCK

    @classmethod
    def for_item(cls, item_id: str, available: int, requested: int,
                 **kw) -> "InsufficientStockError":
        return cls(
            f"Insufficient stock: {available} available, "
            f"{requested} requested for item {item_id}.",
            **kw,
        )


ERRORS_BY_CODE = {
    ReasonCode.VALIDATION_FAILED: ValidationError,
    ReasonCode.ITEM_NOT_FOUND: NotFoundError,
    ReasonCode.JOB_NOT_FOUND: NotFoundError,
    ReasonCode.USER_NOT_FOUND: NotFoundError,
    ReasonCode.INSUFFICIENT_STOCK: InsufficientStockError,
    ReasonCode.OUT_OF_STOCK: InsufficientStockError,
}


def error_for_rejection(reason: RejectionReason) -> WorkshopError:
    error_cls = ERRORS_BY_CODE.get(reason.code, ValidationError)
    return error_cls(reason.message, code=reason.code,
                     policy_name=reason.policy_name)
