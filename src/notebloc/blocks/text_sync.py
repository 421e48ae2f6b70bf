"""Reconcile per-block text fields with the block array.

The UI shows each block as its own live text field but the user sees one
continuous surface. This engine reads the raw change notifications of
those fields and turns specific keystroke patterns into structural edits:

- double newline at the end of a block splits it,
- backspacing the only character of a block merges it into the previous one,
- the delete key on an empty paragraph (delete_pressed) removes it,
- Return routes focus (heading) or opens a new paragraph.

Every structural edit runs through the CommandHistory, so each user action
is exactly one undo step. Comparisons are on raw, untrimmed strings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .commands import (
    ContentChangeCommand,
    DeleteBlockCommand,
    InsertBlockCommand,
    MergeBlocksCommand,
    SplitBlockCommand,
)
from .history import CommandHistory
from .models import Block, BlockType, Document

logger = logging.getLogger(__name__)

DOUBLE_NEWLINE = "\n\n"


class SyncAction(str, Enum):
    """What a change notification turned into."""

    EDIT = "edit"
    SPLIT = "split"
    MERGE = "merge"
    REMOVE = "remove"
    INSERT = "insert"
    FOCUS = "focus"
    NONE = "none"


@dataclass(frozen=True)
class FocusMove:
    """Instruction for the UI: put the caret in ``block_id`` at ``offset``."""

    block_id: str
    offset: int = 0


@dataclass(frozen=True)
class SyncResult:
    action: SyncAction
    block_id: str
    focus: FocusMove | None = None
    changed: bool = False


class TextSyncEngine:
    """Turns raw text-change notifications into document commands.

    The only state is the last observed content of each block's text field,
    which may run ahead of the committed block content (e.g. a one-character
    field that was just emptied).
    """

    def __init__(self, history: CommandHistory) -> None:
        self.history = history
        self._observed: dict[str, str] = {}

    def observed(self, block_id: str) -> str | None:
        return self._observed.get(block_id)

    def resync(self, document: Document) -> None:
        """Reset the observed text to the committed content (after undo/redo or load)."""
        self._observed = {block.id: block.content for block in document.blocks}

    def forget(self, block_id: str) -> None:
        self._observed.pop(block_id, None)

    # -------------------------------------------------------------------------
    # Change notifications
    # -------------------------------------------------------------------------

    def text_changed(self, document: Document, block_id: str, new_content: str) -> SyncResult:
        """Handle a change notification for one block's text field."""
        index = document.index_of(block_id)
        block = document.blocks[index]
        last = self._observed.get(block_id, block.content)

        # Re-reported text (focus, redraw) never triggers a structural edit.
        if new_content == last and new_content == block.content:
            return SyncResult(SyncAction.EDIT, block_id, changed=False)

        if new_content.endswith(DOUBLE_NEWLINE) and not last.endswith(DOUBLE_NEWLINE):
            return self._split(document, block, new_content[: -len(DOUBLE_NEWLINE)])

        if new_content == "" and len(last) == 1 and index > 0:
            return self._merge(document, block, new_content)

        self._observed[block_id] = new_content
        changed = self.history.execute(
            ContentChangeCommand(block_id, block.content, new_content),
            document,
        )
        return SyncResult(SyncAction.EDIT, block_id, changed=changed)

    def delete_pressed(self, document: Document, block_id: str) -> SyncResult:
        """Delete key at the start of a block: drop it if it is an empty, non-first paragraph."""
        index = document.index_of(block_id)
        block = document.blocks[index]
        if not self._removable(block, index):
            return SyncResult(SyncAction.NONE, block_id)

        previous = document.blocks[index - 1]
        self.history.execute(DeleteBlockCommand.for_block(document, block_id), document)
        self.forget(block_id)
        logger.debug("Removed empty block %s", block_id)
        return SyncResult(
            SyncAction.REMOVE,
            block_id,
            focus=FocusMove(previous.id, len(previous.content)),
            changed=True,
        )

    def return_pressed(self, document: Document, block_id: str) -> SyncResult:
        """Return key for input surfaces that submit instead of inserting a newline."""
        block = document.get_block(block_id)

        if block.type is BlockType.HEADING:
            paragraph = document.first_block_of_type(BlockType.PARAGRAPH)
            if paragraph is not None:
                return SyncResult(SyncAction.FOCUS, block_id, focus=FocusMove(paragraph.id, 0))
            return self._insert_after(document, block)

        if block.type is BlockType.PARAGRAPH:
            return self._insert_after(document, block)

        return SyncResult(SyncAction.NONE, block_id)

    # -------------------------------------------------------------------------
    # Structural edits
    # -------------------------------------------------------------------------

    @staticmethod
    def _removable(block: Block, index: int) -> bool:
        return index > 0 and block.type is BlockType.PARAGRAPH and block.is_empty

    def _split(self, document: Document, block: Block, kept: str) -> SyncResult:
        command = SplitBlockCommand.build(document, block.id, kept)
        self.history.execute(command, document)
        self._observed[block.id] = kept
        self._observed[command.new_block_id] = ""
        logger.debug("Split block %s; new block %s", block.id, command.new_block_id)
        return SyncResult(
            SyncAction.SPLIT,
            block.id,
            focus=FocusMove(command.new_block_id, 0),
            changed=True,
        )

    def _merge(self, document: Document, block: Block, current_content: str) -> SyncResult:
        command = MergeBlocksCommand.build(document, block.id, current_content)
        self.history.execute(command, document)
        self.forget(block.id)
        self._observed[command.target_id] = command.merged_content
        logger.debug("Merged block %s into %s", block.id, command.target_id)
        return SyncResult(
            SyncAction.MERGE,
            block.id,
            focus=FocusMove(command.target_id, len(command.merged_content)),
            changed=True,
        )

    def _insert_after(self, document: Document, block: Block) -> SyncResult:
        index = document.index_of(block.id)
        new_block = Block.new(BlockType.PARAGRAPH)
        self.history.execute(InsertBlockCommand(block=new_block, index=index + 1), document)
        self._observed[new_block.id] = ""
        return SyncResult(
            SyncAction.INSERT,
            block.id,
            focus=FocusMove(new_block.id, 0),
            changed=True,
        )
