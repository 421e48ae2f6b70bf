"""Bounded undo/redo history over document commands."""

from __future__ import annotations

import logging
from collections import deque

from ..settings import settings
from .commands import Command
from .models import Document

logger = logging.getLogger(__name__)


class CommandHistory:
    """Two stacks of commands for one editing session.

    The history never keeps a reference to the document: each call receives
    it, so there is only ever one view of the document state.

    Usage:
        history = CommandHistory()
        history.execute(ContentChangeCommand(block.id, "", "Hello"), document)
        history.undo(document)
        history.redo(document)
    """

    def __init__(self, max_depth: int | None = None) -> None:
        self.max_depth = max_depth if max_depth is not None else settings.max_undo_depth
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        # deque(maxlen) drops the oldest entry once the bound is exceeded
        self._undo: deque[Command] = deque(maxlen=self.max_depth)
        self._redo: list[Command] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def execute(self, command: Command, document: Document) -> bool:
        """Apply ``command`` and record it.

        Returns False, without touching the document or the stacks, when the
        command would change nothing. Any new command discards the redo stack.
        """
        if command.is_noop:
            logger.debug("Skipping no-op %s command", command.label)
            return False

        command.execute(document)

        if len(self._undo) == self.max_depth:
            logger.debug("Undo history full (%d); evicting oldest entry", self.max_depth)
        self._undo.append(command)
        self._redo.clear()
        return True

    def undo(self, document: Document) -> bool:
        """Revert the most recent command. False when there is nothing to undo."""
        if not self._undo:
            return False

        command = self._undo.pop()
        try:
            command.undo(document)
        except Exception:
            self._undo.append(command)
            raise
        self._redo.append(command)
        return True

    def redo(self, document: Document) -> bool:
        """Re-apply the most recently undone command. False when there is none."""
        if not self._redo:
            return False

        command = self._redo.pop()
        try:
            command.execute(document)
        except Exception:
            self._redo.append(command)
            raise
        self._undo.append(command)
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
