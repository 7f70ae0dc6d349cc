"""
TEFA Command Layer — Command Bus
================================
Single-writer orchestration of the command lifecycle.

Flow:
    1. Look up the engine handler for command_type
    2. Acquire the store mutation lock
    3. Handler reads state, validates, publishes its events
    4. WorkshopError → rejected CommandResult (never raised from here)

The CommandBus does NOT:
- Contain engine-specific logic
- Touch the entity store itself
- Swallow programming errors (anything not a WorkshopError propagates)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Protocol

from tefa.core.commands.base import Command
from tefa.core.commands.rejection import RejectionReason
from tefa.core import errors

logger = logging.getLogger("tefa.commands")


class EngineHandlerProtocol(Protocol):
    """Each engine registers a handler that executes accepted commands."""

    def execute(self, command: Command) -> Any:
        ...


class CommandBusError(Exception):
    """Base error for command bus wiring problems."""
    pass


class NoHandlerRegistered(CommandBusError):
    """No engine handler registered for command type."""

    def __init__(self, command_type: str):
        self.command_type = command_type
        super().__init__(
            f"No engine handler registered for command type '{command_type}'."
        )


class DuplicateHandlerError(CommandBusError):
    def __init__(self, command_type: str):
        self.command_type = command_type
        super().__init__(
            f"Command type '{command_type}' already has a handler."
        )


class CommandResult:
    """
    Result of CommandBus.handle(): either the handler's execution
    result or the rejection (with the original error attached).
    """

    def __init__(
        self,
        command: Command,
        execution_result: Any = None,
        rejection: Optional[RejectionReason] = None,
        error: Optional[errors.WorkshopError] = None,
    ):
        self.command = command
        self.execution_result = execution_result
        self.rejection = rejection
        self.error = error

    @property
    def is_accepted(self) -> bool:
        return self.rejection is None

    @property
    def is_rejected(self) -> bool:
        return self.rejection is not None

    def unwrap(self) -> Any:
        """Return the execution result, re-raising the rejection error."""
        if self.error is not None:
            raise self.error
        return self.execution_result


class CommandBus:
    """
    Routes commands to engine handlers under one mutation lock.

    Usage:
        bus = CommandBus(lock=store.lock)
        bus.register_handler("inventory.item.create.request", handler)
        result = bus.handle(command)
    """

    def __init__(self, lock: Optional[threading.RLock] = None):
        self._lock = lock if lock is not None else threading.RLock()
        self._handlers: Dict[str, EngineHandlerProtocol] = {}

    def register_handler(
        self, command_type: str, handler: EngineHandlerProtocol,
    ) -> None:
        if command_type in self._handlers:
            raise DuplicateHandlerError(command_type)
        self._handlers[command_type] = handler

    def has_handler(self, command_type: str) -> bool:
        return command_type in self._handlers

    @property
    def registered_types(self) -> frozenset:
        return frozenset(self._handlers)

    def handle(self, command: Command) -> CommandResult:
        handler = self._handlers.get(command.command_type)
        if handler is None:
            raise NoHandlerRegistered(command.command_type)

        with self._lock:
            try:
                execution_result = handler.execute(command)
            except errors.WorkshopError as exc:
                reason = exc.to_rejection()
                logger.warning(
                    f"Command {command.command_type} REJECTED "
                    f"({reason.code}): {reason.message}"
                )
                return CommandResult(command, rejection=reason, error=exc)

        logger.info(
            f"Command {command.command_type} ACCEPTED "
            f"(command_id: {command.command_id}, actor: {command.actor_id})"
        )
        return CommandResult(command, execution_result=execution_result)
