"""Snapshot-based undo/redo."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .circuit import Circuit
from .commands import Command
from .snapshot import Snapshot, has_state_changed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    snapshot: Snapshot
    command: Any


class CommandHistory:
    """Linear undo/redo over whole-circuit snapshots.

    Restoration always imports a full snapshot, so a command's own ``undo``
    is never trusted for history. Recording anything new drops the redo
    stack.
    """

    def __init__(self, circuit: Circuit, limit: int = 100, on_restore: Optional[Callable[[], None]] = None):
        self.circuit = circuit
        self.limit = limit
        self.on_restore = on_restore
        self._undo_stack: List[HistoryEntry] = []
        self._redo_stack: List[HistoryEntry] = []

    def _push(self, entry: HistoryEntry) -> None:
        # Cap history to avoid unbounded growth
        self._undo_stack.append(entry)
        if self.limit and len(self._undo_stack) > self.limit:
            self._undo_stack.pop(0)
        self._redo_stack.clear()

    def execute_command(self, command: Command) -> bool:
        """Run ``command`` and record it if it changed the circuit."""
        before = self.circuit.export_state()
        result = command.execute()
        if result is False:
            logger.debug("%s was a no-op", type(command).__name__)
            return False
        if not has_state_changed(before, self.circuit.export_state()):
            logger.debug("%s left the circuit unchanged", type(command).__name__)
            return False
        self._push(HistoryEntry(before, command))
        logger.info("Recorded %s (%d undoable)", type(command).__name__, len(self._undo_stack))
        return True

    def record(self, command: Command, before: Snapshot) -> bool:
        """Record a command that has already been applied, given its starting state."""
        if not has_state_changed(before, self.circuit.export_state()):
            return False
        self._push(HistoryEntry(before, command))
        logger.info("Recorded %s (%d undoable)", type(command).__name__, len(self._undo_stack))
        return True

    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        entry = self._undo_stack.pop()
        self._redo_stack.append(HistoryEntry(self.circuit.export_state(), entry.command))
        self._restore(entry.snapshot)
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            return False
        entry = self._redo_stack.pop()
        self._undo_stack.append(HistoryEntry(self.circuit.export_state(), entry.command))
        self._restore(entry.snapshot)
        return True

    def _restore(self, snapshot: Snapshot) -> None:
        self.circuit.import_state(snapshot)
        if self.on_restore is not None:
            self.on_restore()

    def forget(self, command) -> bool:
        """Drop the newest entry if it belongs to ``command``."""
        if self._undo_stack and self._undo_stack[-1].command is command:
            self._undo_stack.pop()
            return True
        return False

    def clear(self) -> None:
        self._undo_stack.clear()
        self._redo_stack.clear()

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)
