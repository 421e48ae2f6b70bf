"""One editing session over one document.

The session exclusively owns the in-memory document for as long as it is
open. It forwards UI events to the text-sync engine, keeps the dirty flag,
and saves through the DocumentStore when an external timer calls
``autosave_tick`` (every ``settings.autosave_interval_seconds``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .blocks.commands import TypeChangeCommand
from .blocks.history import CommandHistory
from .blocks.models import BlockType, Document
from .blocks.text_sync import FocusMove, SyncResult, TextSyncEngine
from .errors import NoteblocError
from .store import DocumentStore

logger = logging.getLogger(__name__)


class EditorSession:
    """Editing state for a single open document."""

    def __init__(
        self,
        store: DocumentStore,
        document: Document | None = None,
        *,
        history: CommandHistory | None = None,
    ) -> None:
        self.store = store
        self.is_new = document is None
        self.document = document if document is not None else Document.new()
        self.history = history if history is not None else CommandHistory()
        self.sync = TextSyncEngine(self.history)
        self.sync.resync(self.document)
        self.dirty = False
        self.focus = self._initial_focus()
        self.document.update_cursor(self.focus.block_id, self.focus.offset)

    def _initial_focus(self) -> FocusMove:
        # New documents start on the heading; reopened ones at the end of the text.
        if self.is_new:
            return FocusMove(self.document.blocks[0].id, 0)
        last = self.document.blocks[-1]
        return FocusMove(last.id, len(last.content))

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # -------------------------------------------------------------------------
    # UI events
    # -------------------------------------------------------------------------

    def text_changed(self, block_id: str, new_content: str) -> SyncResult:
        return self._apply(self.sync.text_changed(self.document, block_id, new_content))

    def return_pressed(self, block_id: str) -> SyncResult:
        return self._apply(self.sync.return_pressed(self.document, block_id))

    def delete_pressed(self, block_id: str) -> SyncResult:
        return self._apply(self.sync.delete_pressed(self.document, block_id))

    def change_block_type(self, block_id: str, new_type: BlockType | str) -> bool:
        if isinstance(new_type, str):
            new_type = BlockType(new_type)
        block = self.document.get_block(block_id)
        changed = self.history.execute(
            TypeChangeCommand(block_id, block.type, new_type),
            self.document,
        )
        if changed:
            self.dirty = True
        return changed

    def focus_changed(self, block_id: str, offset: int = 0) -> None:
        self.document.update_cursor(block_id, offset)
        self.focus = FocusMove(block_id, self.document.cursor.offset)

    def _apply(self, result: SyncResult) -> SyncResult:
        if result.changed:
            self.dirty = True
        if result.focus is not None:
            self.focus_changed(result.focus.block_id, result.focus.offset)
        return result

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> bool:
        return self._after_history(self.history.undo(self.document))

    def redo(self) -> bool:
        return self._after_history(self.history.redo(self.document))

    def _after_history(self, applied: bool) -> bool:
        if not applied:
            return False
        self.dirty = True
        self.sync.resync(self.document)
        if not self.document.has_block(self.focus.block_id):
            last = self.document.blocks[-1]
            self.focus_changed(last.id, len(last.content))
        return True

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def add_tags(self, tags: Iterable[str]) -> list[str]:
        """Merge tags produced by the external classifier."""
        added = self.document.merge_tags(tags)
        if added:
            self.dirty = True
        return added

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> bool:
        """Save now. Empty documents are never written.

        Raises:
            ValidationError, StorageError: From the store; the dirty flag is kept.
        """
        if self.document.is_empty:
            logger.debug("Not saving empty document %s", self.document.id)
            return False

        self.document.title = self.document.generated_title
        self.store.save(self.document)
        self.dirty = False
        return True

    def autosave_tick(self) -> bool:
        """Timer callback: save if there are unsaved changes.

        Errors are logged and the document stays dirty so the next tick retries.
        """
        if not self.dirty:
            return False
        try:
            return self.save()
        except NoteblocError as e:
            logger.warning("Autosave of %s failed: %s", self.document.id, e)
            return False

    def close(self) -> bool:
        if self.dirty:
            return self.save()
        return False
