"""Tests for blocks/text_sync.py - keystroke patterns to structural edits.

Each test drives the engine the way a text field would: one notification
per observed content, in order.
"""

from __future__ import annotations

import pytest

from notebloc.blocks.history import CommandHistory
from notebloc.blocks.models import BlockType, Document
from notebloc.blocks.text_sync import FocusMove, SyncAction, TextSyncEngine
from notebloc.errors import NotFoundError


@pytest.fixture
def sync_for(history: CommandHistory):
    def _sync(doc: Document) -> TextSyncEngine:
        engine = TextSyncEngine(history)
        engine.resync(doc)
        return engine

    return _sync


def _contents(doc: Document) -> list[str]:
    return [b.content for b in doc.blocks]


# =============================================================================
# Plain Edits
# =============================================================================


class TestPlainEdit:
    def test_commits_content(self, engine: TextSyncEngine, document: Document) -> None:
        paragraph = document.blocks[1]

        result = engine.text_changed(document, paragraph.id, "Hello")

        assert result.action is SyncAction.EDIT
        assert result.changed is True
        assert result.focus is None
        assert paragraph.content == "Hello"
        assert engine.observed(paragraph.id) == "Hello"

    def test_each_keystroke_is_one_undo_step(
        self, engine: TextSyncEngine, history: CommandHistory, document: Document
    ) -> None:
        paragraph = document.blocks[1]

        for text in ("H", "He", "Hel"):
            engine.text_changed(document, paragraph.id, text)

        assert history.undo_depth == 3

    def test_unchanged_notification_records_nothing(
        self, engine: TextSyncEngine, history: CommandHistory, document: Document
    ) -> None:
        heading = document.blocks[0]
        engine.text_changed(document, heading.id, "Title")

        result = engine.text_changed(document, heading.id, "Title")

        assert result.action is SyncAction.EDIT
        assert result.changed is False
        assert history.undo_depth == 1

    def test_single_newline_is_plain_text(self, engine: TextSyncEngine, document: Document) -> None:
        paragraph = document.blocks[1]

        result = engine.text_changed(document, paragraph.id, "line one\n")

        assert result.action is SyncAction.EDIT
        assert len(document.blocks) == 2

    def test_first_block_emptied_stays(self, engine: TextSyncEngine, document: Document) -> None:
        heading = document.blocks[0]
        engine.text_changed(document, heading.id, "x")

        result = engine.text_changed(document, heading.id, "")

        assert result.action is SyncAction.EDIT
        assert len(document.blocks) == 2
        assert heading.content == ""

    def test_unknown_block(self, engine: TextSyncEngine, document: Document) -> None:
        with pytest.raises(NotFoundError):
            engine.text_changed(document, "missing", "x")


# =============================================================================
# Split on Double Newline
# =============================================================================


class TestSplit:
    def test_double_newline_splits(self, engine: TextSyncEngine, document: Document) -> None:
        paragraph = document.blocks[1]
        engine.text_changed(document, paragraph.id, "Hello")
        engine.text_changed(document, paragraph.id, "Hello\n")

        result = engine.text_changed(document, paragraph.id, "Hello\n\n")

        assert result.action is SyncAction.SPLIT
        assert [(b.type, b.content) for b in document.blocks] == [
            (BlockType.HEADING, ""),
            (BlockType.PARAGRAPH, "Hello"),
            (BlockType.PARAGRAPH, ""),
        ]
        assert result.focus == FocusMove(document.blocks[2].id, 0)
        assert engine.observed(paragraph.id) == "Hello"
        assert engine.observed(document.blocks[2].id) == ""

    def test_split_from_heading_opens_paragraph(self, engine: TextSyncEngine, document: Document) -> None:
        heading = document.blocks[0]

        engine.text_changed(document, heading.id, "Notes\n\n")

        assert _contents(document) == ["Notes", "", ""]
        assert document.blocks[0].type is BlockType.HEADING
        assert document.blocks[1].type is BlockType.PARAGRAPH

    def test_only_two_newlines_are_stripped(self, engine: TextSyncEngine, document: Document) -> None:
        paragraph = document.blocks[1]

        result = engine.text_changed(document, paragraph.id, "Hello\n\n\n")

        assert result.action is SyncAction.SPLIT
        assert paragraph.content == "Hello\n"

    def test_triggers_once_per_transition(self, make_document, sync_for) -> None:
        doc = make_document("Title", "kept\n\n")
        engine = sync_for(doc)

        result = engine.text_changed(doc, doc.blocks[1].id, "kept\n\n\n")

        assert result.action is SyncAction.EDIT
        assert len(doc.blocks) == 2

    def test_split_is_one_undo_step(
        self, engine: TextSyncEngine, history: CommandHistory, document: Document
    ) -> None:
        paragraph = document.blocks[1]
        engine.text_changed(document, paragraph.id, "Hello")
        depth = history.undo_depth

        engine.text_changed(document, paragraph.id, "Hello\n\n")
        assert history.undo_depth == depth + 1

        history.undo(document)
        assert _contents(document) == ["", "Hello"]


# =============================================================================
# Merge on Backspace
# =============================================================================


class TestMerge:
    def test_backspace_last_char_merges(self, make_document, sync_for) -> None:
        doc = make_document("Title", "Hello", "x")
        engine = sync_for(doc)
        target = doc.blocks[1]

        result = engine.text_changed(doc, doc.blocks[2].id, "")

        assert result.action is SyncAction.MERGE
        assert _contents(doc) == ["Title", "Hello"]
        assert result.focus == FocusMove(target.id, len("Hello"))
        assert engine.observed(target.id) == "Hello"

    def test_merge_is_one_undo_step(self, make_document, sync_for, history: CommandHistory, state) -> None:
        doc = make_document("Title", "Hello", "x")
        before = state(doc)
        engine = sync_for(doc)

        engine.text_changed(doc, doc.blocks[2].id, "")
        assert history.undo_depth == 1

        history.undo(doc)
        assert state(doc) == before

    def test_longer_deletion_does_not_merge(self, make_document, sync_for) -> None:
        doc = make_document("Title", "Hello", "xy")
        engine = sync_for(doc)

        result = engine.text_changed(doc, doc.blocks[2].id, "")

        assert result.action is SyncAction.EDIT
        assert _contents(doc) == ["Title", "Hello", ""]

    def test_split_then_merge_restores_content(self, engine: TextSyncEngine, document: Document) -> None:
        paragraph = document.blocks[1]
        engine.text_changed(document, paragraph.id, "Hello")
        engine.text_changed(document, paragraph.id, "Hello\n\n")
        new_id = document.blocks[2].id

        engine.text_changed(document, new_id, "x")
        result = engine.text_changed(document, new_id, "")

        assert result.action is SyncAction.MERGE
        assert _contents(document) == ["", "Hello"]
        assert document.blocks[1].id == paragraph.id


# =============================================================================
# Delete Forward
# =============================================================================


class TestDeleteForward:
    def test_empty_paragraph_is_removed(self, make_document, sync_for) -> None:
        doc = make_document("Title", "Hello", "")
        engine = sync_for(doc)
        empty = doc.blocks[2]

        result = engine.delete_pressed(doc, empty.id)

        assert result.action is SyncAction.REMOVE
        assert _contents(doc) == ["Title", "Hello"]
        assert result.focus == FocusMove(doc.blocks[1].id, len("Hello"))
        assert engine.observed(empty.id) is None

    def test_rereported_empty_text_keeps_new_block(
        self, engine: TextSyncEngine, history: CommandHistory, document: Document
    ) -> None:
        paragraph = document.blocks[1]
        engine.text_changed(document, paragraph.id, "Hello")
        engine.text_changed(document, paragraph.id, "Hello\n\n")
        new_id = document.blocks[2].id
        depth = history.undo_depth

        result = engine.text_changed(document, new_id, "")

        assert result.action is SyncAction.EDIT
        assert result.changed is False
        assert _contents(document) == ["", "Hello", ""]
        assert history.undo_depth == depth

    def test_rereported_empty_text_after_return(self, make_document, sync_for) -> None:
        doc = make_document("Title", "a")
        engine = sync_for(doc)
        engine.return_pressed(doc, doc.blocks[1].id)

        result = engine.text_changed(doc, doc.blocks[2].id, "")

        assert result.changed is False
        assert len(doc.blocks) == 3

    def test_delete_pressed_directly(self, make_document, sync_for, history: CommandHistory) -> None:
        doc = make_document("Title", "")
        engine = sync_for(doc)

        result = engine.delete_pressed(doc, doc.blocks[1].id)

        assert result.action is SyncAction.REMOVE
        assert _contents(doc) == ["Title"]
        assert result.focus == FocusMove(doc.blocks[0].id, len("Title"))

        history.undo(doc)
        assert _contents(doc) == ["Title", ""]

    def test_first_block_is_never_removed(self, engine: TextSyncEngine, document: Document) -> None:
        result = engine.delete_pressed(document, document.blocks[0].id)

        assert result.action is SyncAction.NONE
        assert len(document.blocks) == 2

    def test_non_empty_paragraph_is_kept(self, make_document, sync_for) -> None:
        doc = make_document("Title", "text")
        engine = sync_for(doc)

        result = engine.delete_pressed(doc, doc.blocks[1].id)

        assert result.action is SyncAction.NONE
        assert result.changed is False
        assert len(doc.blocks) == 2

    def test_empty_heading_is_kept(self, make_document, sync_for) -> None:
        doc = make_document("Title", "Body", "")
        doc.set_block_type(doc.blocks[2].id, BlockType.HEADING)
        engine = sync_for(doc)

        result = engine.text_changed(doc, doc.blocks[2].id, "")

        assert result.action is SyncAction.EDIT
        assert len(doc.blocks) == 3


# =============================================================================
# Return Key
# =============================================================================


class TestReturnPressed:
    def test_heading_focuses_existing_paragraph(
        self, engine: TextSyncEngine, history: CommandHistory, document: Document
    ) -> None:
        result = engine.return_pressed(document, document.blocks[0].id)

        assert result.action is SyncAction.FOCUS
        assert result.focus == FocusMove(document.blocks[1].id, 0)
        assert len(document.blocks) == 2
        assert not history.can_undo

    def test_titled_heading_keeps_block_count(self, titled_document: Document, sync_for) -> None:
        engine = sync_for(titled_document)
        body = titled_document.blocks[1]

        result = engine.return_pressed(titled_document, titled_document.blocks[0].id)

        assert result.focus == FocusMove(body.id, 0)
        assert _contents(titled_document) == ["Title", "Body"]

    def test_heading_focuses_first_paragraph_anywhere(self, make_document, sync_for) -> None:
        doc = make_document("Title", "Sub", "Body")
        doc.set_block_type(doc.blocks[1].id, BlockType.HEADING)
        engine = sync_for(doc)

        result = engine.return_pressed(doc, doc.blocks[0].id)

        assert result.focus == FocusMove(doc.blocks[2].id, 0)

    def test_heading_without_paragraph_creates_one(self, make_document, sync_for) -> None:
        doc = make_document("Title")
        engine = sync_for(doc)

        result = engine.return_pressed(doc, doc.blocks[0].id)

        assert result.action is SyncAction.INSERT
        assert [b.type for b in doc.blocks] == [BlockType.HEADING, BlockType.PARAGRAPH]
        assert result.focus == FocusMove(doc.blocks[1].id, 0)

    def test_paragraph_inserts_after_itself(self, make_document, sync_for, history: CommandHistory) -> None:
        doc = make_document("Title", "a", "b")
        engine = sync_for(doc)

        result = engine.return_pressed(doc, doc.blocks[1].id)

        assert result.action is SyncAction.INSERT
        assert _contents(doc) == ["Title", "a", "", "b"]
        assert doc.blocks[2].type is BlockType.PARAGRAPH
        assert result.focus == FocusMove(doc.blocks[2].id, 0)
        assert history.undo_depth == 1


class TestResync:
    def test_resync_after_undo(
        self, engine: TextSyncEngine, history: CommandHistory, document: Document
    ) -> None:
        paragraph = document.blocks[1]
        engine.text_changed(document, paragraph.id, "draft")
        history.undo(document)

        engine.resync(document)

        assert engine.observed(paragraph.id) == ""
