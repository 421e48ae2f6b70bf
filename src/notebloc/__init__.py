"""notebloc: block-based document engine for a local note-taking app."""

from .blocks import Block, BlockType, CommandHistory, Document, TextSyncEngine
from .editor import EditorSession
from .store import DocumentStore

__version__ = "0.1.0"

__all__ = [
    "Block",
    "BlockType",
    "CommandHistory",
    "Document",
    "DocumentStore",
    "EditorSession",
    "TextSyncEngine",
    "__version__",
]
