"""Data models for the block document.

A document is an ordered, non-empty sequence of typed blocks plus the
metadata persisted alongside it. The primitive mutations here are not
reversible on their own; commands.py wraps them for undo/redo.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from dateutil.parser import isoparse

from ..errors import InvariantViolationError, NotFoundError
from ..settings import settings

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid4())


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as ISO-8601 UTC with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(raw, str):
        raise ValueError(f"Timestamp must be a string, got {type(raw).__name__}")
    value = isoparse(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


class BlockType(str, Enum):
    """Supported block types.

    The set is closed but meant to grow; the value is what gets persisted.
    """

    HEADING = "heading"
    PARAGRAPH = "paragraph"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass
class BlockMetadata:
    created_at: datetime = field(default_factory=_now)
    last_edited_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "createdAt": format_timestamp(self.created_at),
            "lastEditedAt": format_timestamp(self.last_edited_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlockMetadata:
        return cls(
            created_at=parse_timestamp(data["createdAt"]),
            last_edited_at=parse_timestamp(data["lastEditedAt"]),
        )


@dataclass
class Block:
    """A typed unit of document content.

    ``id`` is assigned once and never reused; everything else may change
    through the owning document.
    """

    id: str
    type: BlockType
    content: str = ""
    metadata: BlockMetadata = field(default_factory=BlockMetadata)

    @classmethod
    def new(cls, type: BlockType | str = BlockType.PARAGRAPH, content: str = "") -> Block:
        """Create a block with a fresh id."""
        if isinstance(type, str):
            type = BlockType(type)
        return cls(id=_new_id(), type=type, content=content)

    @property
    def is_empty(self) -> bool:
        """True when the content holds nothing but whitespace."""
        return not self.content.strip()

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    def update_content(self, content: str) -> None:
        self.content = content
        self.metadata.last_edited_at = _now()

    def copy(self) -> Block:
        """Independent snapshot, safe to keep in the undo history."""
        return replace(self, metadata=replace(self.metadata))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "blockType": self.type.value,
            "content": self.content,
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Block:
        """Create from dictionary."""
        block_id = data["id"]
        content = data["content"]
        if not isinstance(block_id, str) or not isinstance(content, str):
            raise ValueError("Block id and content must be strings")
        return cls(
            id=block_id,
            type=BlockType(data["blockType"]),
            content=content,
            metadata=BlockMetadata.from_dict(data["metadata"]),
        )


@dataclass
class CursorPosition:
    """Last known caret location, restored when a document is reopened."""

    block_id: str = ""
    offset: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"blockId": self.block_id, "position": self.offset}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CursorPosition:
        return cls(block_id=str(data["blockId"]), offset=int(data["position"]))


def _default_blocks() -> list[Block]:
    return [Block.new(BlockType.HEADING), Block.new(BlockType.PARAGRAPH)]


@dataclass
class Document:
    """The aggregate root: ordered blocks plus persisted metadata.

    Invariants:
    - ``blocks`` is never empty.
    - Block ids are pairwise distinct.
    - ``created_at <= last_edited_at`` (checked again before saving).
    """

    id: str = field(default_factory=_new_id)
    version: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    last_edited_at: datetime = field(default_factory=_now)
    author: str = field(default_factory=lambda: settings.default_author)
    active: bool = True
    title: str = ""
    blocks: list[Block] = field(default_factory=_default_blocks)
    cursor: CursorPosition = field(default_factory=CursorPosition)
    tags: list[str] = field(default_factory=list)

    @classmethod
    def new(cls, author: str | None = None) -> Document:
        """Create an empty document: one Heading, one Paragraph, caret on the heading."""
        now = _now()
        doc = cls(created_at=now, last_edited_at=now)
        if author is not None:
            doc.author = author
        doc.cursor = CursorPosition(block_id=doc.blocks[0].id, offset=0)
        return doc

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def index_of(self, block_id: str) -> int:
        for i, block in enumerate(self.blocks):
            if block.id == block_id:
                return i
        raise NotFoundError(
            f"Block not found: {block_id}",
            resource_type="block",
            resource_id=block_id,
        )

    def get_block(self, block_id: str) -> Block:
        return self.blocks[self.index_of(block_id)]

    def has_block(self, block_id: str) -> bool:
        return any(block.id == block_id for block in self.blocks)

    def first_block_of_type(self, block_type: BlockType) -> Block | None:
        for block in self.blocks:
            if block.type is block_type:
                return block
        return None

    # -------------------------------------------------------------------------
    # Primitive mutations
    # -------------------------------------------------------------------------

    def touch(self) -> None:
        """Mark the document as mutated: new edit time and a fresh version."""
        self.last_edited_at = _now()
        self.version = _new_id()

    def insert_block(self, after_id: str, type: BlockType = BlockType.PARAGRAPH) -> Block:
        """Insert a new empty block immediately after ``after_id``."""
        index = self.index_of(after_id)
        block = Block.new(type)
        self.blocks.insert(index + 1, block)
        self.touch()
        return block

    def insert_block_at(self, index: int, block: Block) -> None:
        """Insert ``block`` at ``index`` (clamped to the valid range)."""
        if self.has_block(block.id):
            raise InvariantViolationError(
                f"Block id already present: {block.id}",
                invariant="unique_block_ids",
            )
        index = max(0, min(index, len(self.blocks)))
        self.blocks.insert(index, block)
        self.touch()

    def remove_block(self, block_id: str) -> tuple[Block, int]:
        """Remove a block and return it with the index it occupied.

        The last remaining block can never be removed.
        """
        index = self.index_of(block_id)
        if len(self.blocks) <= 1:
            raise InvariantViolationError(
                "Cannot remove the last block of a document",
                invariant="non_empty",
            )
        block = self.blocks.pop(index)
        self.touch()
        return block, index

    def set_block_content(self, block_id: str, text: str) -> None:
        """Replace a block's content verbatim."""
        self.get_block(block_id).update_content(text)
        self.touch()

    def set_block_type(self, block_id: str, block_type: BlockType) -> None:
        self.get_block(block_id).type = block_type
        self.touch()

    def update_cursor(self, block_id: str, offset: int = 0) -> None:
        block = self.get_block(block_id)
        offset = max(0, min(offset, len(block.content)))
        self.cursor = CursorPosition(block_id=block_id, offset=offset)
        self.touch()

    def merge_tags(self, tags: Iterable[str]) -> list[str]:
        """Union ``tags`` into the document's tags; returns the newly added ones."""
        added = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in self.tags and tag not in added:
                added.append(tag)
        if added:
            self.tags.extend(added)
            self.touch()
        return added

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return all(block.is_empty for block in self.blocks)

    @property
    def generated_title(self) -> str:
        """First non-empty block content, trimmed and capped in length."""
        for block in self.blocks:
            text = block.content.strip()
            if text:
                return text[: settings.title_max_length]
        return settings.untitled_title

    @property
    def total_word_count(self) -> int:
        return sum(block.word_count for block in self.blocks)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "id": self.id,
            "version": self.version,
            "createdAt": format_timestamp(self.created_at),
            "lastEditedAt": format_timestamp(self.last_edited_at),
            "author": self.author,
            "active": self.active,
            "title": self.title,
            "blocks": [block.to_dict() for block in self.blocks],
            "cursorPosition": self.cursor.to_dict(),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        """Create from the persisted JSON shape.

        Raises KeyError, TypeError or ValueError on malformed input.
        """
        if not isinstance(data, dict):
            raise TypeError("Document payload must be a JSON object")
        blocks = data["blocks"]
        tags = data.get("tags", [])
        if not isinstance(blocks, list) or not isinstance(tags, list):
            raise TypeError("blocks and tags must be lists")
        return cls(
            id=str(data["id"]),
            version=str(data["version"]),
            created_at=parse_timestamp(data["createdAt"]),
            last_edited_at=parse_timestamp(data["lastEditedAt"]),
            author=str(data.get("author", settings.default_author)),
            active=bool(data.get("active", True)),
            title=str(data.get("title", "")),
            blocks=[Block.from_dict(item) for item in blocks],
            cursor=CursorPosition.from_dict(data["cursorPosition"]),
            tags=[str(tag) for tag in tags],
        )
