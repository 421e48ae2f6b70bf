from __future__ import annotations

from pathlib import Path

import pytest

from notebloc.blocks.history import CommandHistory
from notebloc.blocks.models import Block, BlockType, Document
from notebloc.blocks.text_sync import TextSyncEngine
from notebloc.store import DocumentStore


@pytest.fixture
def store(tmp_path: Path) -> DocumentStore:
    """Store rooted in a temp directory so tests never touch the real data dir."""
    return DocumentStore(root=tmp_path / "documents")


@pytest.fixture
def document() -> Document:
    return Document.new()


@pytest.fixture
def titled_document() -> Document:
    """[Heading("Title"), Paragraph("Body")]."""
    doc = Document.new()
    doc.set_block_content(doc.blocks[0].id, "Title")
    doc.set_block_content(doc.blocks[1].id, "Body")
    return doc


@pytest.fixture
def history() -> CommandHistory:
    return CommandHistory(max_depth=50)


@pytest.fixture
def engine(history: CommandHistory, document: Document) -> TextSyncEngine:
    sync = TextSyncEngine(history)
    sync.resync(document)
    return sync


@pytest.fixture
def make_document():
    """Factory: build a document whose blocks hold the given contents (first one a heading)."""

    def _make(*contents: str, heading: bool = True) -> Document:
        blocks = [
            Block.new(BlockType.HEADING if heading and i == 0 else BlockType.PARAGRAPH, text)
            for i, text in enumerate(contents)
        ]
        doc = Document.new()
        doc.blocks = blocks
        doc.cursor.block_id = blocks[0].id
        return doc

    return _make


def block_state(doc: Document) -> list[tuple[str, str, str]]:
    """Comparable view of a document's blocks: (id, type, content)."""
    return [(b.id, b.type.value, b.content) for b in doc.blocks]


@pytest.fixture
def state():
    return block_state
