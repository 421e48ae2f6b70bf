"""Block document editing core.

Key components:
- models: Block, BlockType, Document, CursorPosition
- commands: reversible mutations (content, type, insert, delete, merge, split)
- history: CommandHistory with bounded undo/redo
- text_sync: TextSyncEngine mapping keystrokes to structural edits
"""

from .commands import (
    Command,
    CompositeCommand,
    ContentChangeCommand,
    DeleteBlockCommand,
    InsertBlockCommand,
    MergeBlocksCommand,
    SplitBlockCommand,
    TypeChangeCommand,
)
from .history import CommandHistory
from .models import Block, BlockMetadata, BlockType, CursorPosition, Document
from .text_sync import FocusMove, SyncAction, SyncResult, TextSyncEngine

__all__ = [
    "Block",
    "BlockMetadata",
    "BlockType",
    "CursorPosition",
    "Document",
    "Command",
    "CompositeCommand",
    "ContentChangeCommand",
    "DeleteBlockCommand",
    "InsertBlockCommand",
    "MergeBlocksCommand",
    "SplitBlockCommand",
    "TypeChangeCommand",
    "CommandHistory",
    "FocusMove",
    "SyncAction",
    "SyncResult",
    "TextSyncEngine",
]
