"""Reversible document mutations.

Every user-visible change to a document is expressed as a command that
can apply itself and exactly invert itself. Commands never hold the
document; it is passed to ``execute``/``undo`` each time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..errors import InvariantViolationError
from .models import Block, BlockType, Document

logger = logging.getLogger(__name__)


class Command(ABC):
    """A reversible description of one document mutation."""

    label: str = "edit"

    @abstractmethod
    def execute(self, document: Document) -> None:
        """Apply the mutation to ``document``."""

    @abstractmethod
    def undo(self, document: Document) -> None:
        """Revert exactly what ``execute`` did."""

    @property
    def is_noop(self) -> bool:
        """True when executing would not change anything."""
        return False


# =============================================================================
# Single-step Commands
# =============================================================================


@dataclass
class ContentChangeCommand(Command):
    block_id: str
    old_content: str
    new_content: str
    label: str = field(default="content", init=False)

    def execute(self, document: Document) -> None:
        document.set_block_content(self.block_id, self.new_content)

    def undo(self, document: Document) -> None:
        document.set_block_content(self.block_id, self.old_content)

    @property
    def is_noop(self) -> bool:
        return self.old_content == self.new_content


@dataclass
class TypeChangeCommand(Command):
    block_id: str
    old_type: BlockType
    new_type: BlockType
    label: str = field(default="type", init=False)

    def execute(self, document: Document) -> None:
        document.set_block_type(self.block_id, self.new_type)

    def undo(self, document: Document) -> None:
        document.set_block_type(self.block_id, self.old_type)

    @property
    def is_noop(self) -> bool:
        return self.old_type is self.new_type


@dataclass
class InsertBlockCommand(Command):
    """Insert ``block`` at ``index``; undo removes it again by id."""

    block: Block
    index: int
    label: str = field(default="insert", init=False)

    def execute(self, document: Document) -> None:
        document.insert_block_at(self.index, self.block.copy())

    def undo(self, document: Document) -> None:
        document.remove_block(self.block.id)


@dataclass
class DeleteBlockCommand(Command):
    """Remove ``block``; undo puts it back at the exact original index.

    Re-inserting by index rather than "after some neighbour" keeps
    interleaved insert/delete sequences correct across several undos.
    """

    block: Block
    index: int
    label: str = field(default="delete", init=False)

    @classmethod
    def for_block(cls, document: Document, block_id: str) -> DeleteBlockCommand:
        index = document.index_of(block_id)
        return cls(block=document.blocks[index].copy(), index=index)

    def execute(self, document: Document) -> None:
        document.remove_block(self.block.id)

    def undo(self, document: Document) -> None:
        document.insert_block_at(self.index, self.block.copy())


# =============================================================================
# Composite Commands
# =============================================================================


@dataclass
class CompositeCommand(Command):
    """Several commands applied and reverted as one history entry.

    Children run in order and are undone in reverse. If a child fails,
    the children already applied are reverted before the error propagates,
    so the document is left as it was.
    """

    commands: list[Command]
    label: str = "composite"

    def execute(self, document: Document) -> None:
        applied: list[Command] = []
        try:
            for command in self.commands:
                command.execute(document)
                applied.append(command)
        except Exception:
            logger.warning(
                "Rolling back %d of %d steps of %s",
                len(applied),
                len(self.commands),
                self.label,
            )
            for command in reversed(applied):
                command.undo(document)
            raise

    def undo(self, document: Document) -> None:
        for command in reversed(self.commands):
            command.undo(document)

    @property
    def is_noop(self) -> bool:
        return all(command.is_noop for command in self.commands)


class MergeBlocksCommand(CompositeCommand):
    """Fold a block into the one before it.

    The previous block gets ``previous + current`` (reading order) and the
    current block is deleted.
    """

    def __init__(self, content_change: ContentChangeCommand, delete: DeleteBlockCommand) -> None:
        super().__init__(commands=[content_change, delete], label="merge")
        self.content_change = content_change
        self.delete = delete

    @classmethod
    def build(cls, document: Document, block_id: str, current_content: str) -> MergeBlocksCommand:
        index = document.index_of(block_id)
        if index == 0:
            raise InvariantViolationError(
                "The first block has no previous block to merge into",
                invariant="merge_target",
            )
        previous = document.blocks[index - 1]
        content_change = ContentChangeCommand(
            block_id=previous.id,
            old_content=previous.content,
            new_content=previous.content + current_content,
        )
        return cls(content_change, DeleteBlockCommand.for_block(document, block_id))

    @property
    def target_id(self) -> str:
        return self.content_change.block_id

    @property
    def merged_content(self) -> str:
        return self.content_change.new_content


class SplitBlockCommand(CompositeCommand):
    """Commit truncated text to a block and open a new block after it."""

    def __init__(self, content_change: ContentChangeCommand, insert: InsertBlockCommand) -> None:
        super().__init__(commands=[content_change, insert], label="split")
        self.content_change = content_change
        self.insert = insert

    @classmethod
    def build(
        cls,
        document: Document,
        block_id: str,
        kept_content: str,
        new_type: BlockType = BlockType.PARAGRAPH,
    ) -> SplitBlockCommand:
        index = document.index_of(block_id)
        block = document.blocks[index]
        content_change = ContentChangeCommand(
            block_id=block.id,
            old_content=block.content,
            new_content=kept_content,
        )
        return cls(content_change, InsertBlockCommand(block=Block.new(new_type), index=index + 1))

    @property
    def new_block_id(self) -> str:
        return self.insert.block.id
