"""Durable storage for documents, one JSON file per document.

Storage location: ``settings.documents_dir`` (``~/.notebloc/documents``),
file name ``{document_id}.json``.

Saving is crash-safe:
  1. Validate the document; nothing is written if that fails.
  2. Copy the existing file to ``{document_id}.json.backup`` (best effort).
  3. Write ``{document_id}.json.tmp``, read it back, then rename it over
     the target in one step.
  4. On any failure after validation, discard the temp file, restore the
     backup taken by this save if the rename was attempted (best effort),
     and raise StorageError.

There is no locking; the rename keeps the committed file intact even if
the process dies mid-write.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from .blocks.models import Document
from .errors import (
    CorruptFileError,
    NoteblocError,
    NotFoundError,
    Result,
    StorageError,
    ValidationError,
)
from .settings import settings

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".json"
BACKUP_SUFFIX = ".backup"
TEMP_SUFFIX = ".tmp"


def validate_document(document: Document) -> None:
    """Check the invariants a document must satisfy before it is written.

    Raises:
        ValidationError: On the first failed check.
    """
    if not document.id or not document.id.strip():
        raise ValidationError("Document has no id", field="id", constraint="non_empty")

    if not document.blocks:
        raise ValidationError("Document has no blocks", field="blocks", constraint="non_empty")

    seen: set[str] = set()
    for block in document.blocks:
        if block.id in seen:
            raise ValidationError(
                "Document has duplicate block ids",
                field="blocks",
                value=block.id,
                constraint="unique_ids",
            )
        seen.add(block.id)

    if document.created_at > document.last_edited_at:
        raise ValidationError(
            "Document was edited before it was created",
            field="lastEditedAt",
            constraint="created_at <= last_edited_at",
        )


def serialize_document(document: Document) -> str:
    """Pretty-printed JSON with sorted keys, so stored files diff cleanly."""
    return json.dumps(document.to_dict(), ensure_ascii=False, indent=2, sort_keys=True) + "\n"


class DocumentStore:
    """Reads and writes documents under one directory."""

    def __init__(self, root: Path | str | None = None) -> None:
        self.root = Path(root) if root is not None else settings.documents_dir

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def document_path(self, document_id: str) -> Path:
        if not document_id or "/" in document_id or "\\" in document_id or document_id in {".", ".."}:
            raise ValidationError("Invalid document id", field="id", value=document_id)
        return self.root / f"{document_id}{DOCUMENT_SUFFIX}"

    def backup_path(self, document_id: str) -> Path:
        path = self.document_path(document_id)
        return path.with_name(path.name + BACKUP_SUFFIX)

    def _temp_path(self, document_id: str) -> Path:
        path = self.document_path(document_id)
        return path.with_name(path.name + TEMP_SUFFIX)

    # -------------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------------

    def save(self, document: Document) -> Path:
        """Validate and atomically write ``document``.

        Safe to call repeatedly on an unchanged document.

        Raises:
            ValidationError: The document breaks an invariant; nothing written.
            StorageError: The write failed; the previous file was restored
                from its backup where possible.
        """
        validate_document(document)

        target = self.document_path(document.id)
        temp = self._temp_path(document.id)
        backup: Path | None = None
        replacing = False

        try:
            self._ensure_root()
            backup = self._backup(document.id)

            temp.write_text(serialize_document(document), encoding="utf-8")
            # Verify the written data can be read back before committing it
            json.loads(temp.read_text(encoding="utf-8"))
            replacing = True
            os.replace(temp, target)
        except (OSError, ValueError) as e:
            logger.exception("Failed to save document %s", document.id)
            self._discard(temp)
            # Before the rename the target is untouched; a stale backup must not replace it.
            if replacing and backup is not None:
                self._restore_backup(backup, target)
            raise StorageError(
                f"Failed to save document {document.id}: {e}",
                operation="save",
                path=str(target),
            ) from e

        logger.debug("Saved document %s (%s)", document.id, document.generated_title)
        return target

    def _backup(self, document_id: str) -> Path | None:
        """Copy the committed file to its backup sibling.

        Returns the backup written by this call, or None when there was nothing
        to copy or the copy failed (logged only).
        """
        source = self.document_path(document_id)
        if not source.exists():
            return None

        backup = self.backup_path(document_id)
        try:
            shutil.copy2(source, backup)
            return backup
        except OSError as e:
            logger.warning("Failed to back up %s to %s: %s", source, backup, e)
            return None

    @staticmethod
    def _restore_backup(backup: Path, target: Path) -> bool:
        try:
            shutil.copy2(backup, target)
        except OSError as e:
            logger.warning("Failed to restore %s from %s: %s", target, backup, e)
            return False
        logger.info("Restored %s from backup", target)
        return True

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove temporary file %s: %s", path, e)

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    def load(self, path: Path | str) -> Document:
        """Deserialize one document file.

        Raises:
            NotFoundError: No file at ``path``.
            CorruptFileError: The file is unreadable or not a valid document.
        """
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(
                f"Document file not found: {path}",
                resource_type="document",
                resource_id=path.stem,
            )

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            document = Document.from_dict(data)
            validate_document(document)
        except (OSError, ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
            raise CorruptFileError(
                f"Could not read document {path.name}",
                path=str(path),
                reason=f"{type(e).__name__}: {e}",
            ) from e
        return document

    def load_document(self, document_id: str) -> Document:
        return self.load(self.document_path(document_id))

    def try_load(self, path: Path | str) -> Result[Document]:
        try:
            return Result.ok(self.load(path))
        except NoteblocError as e:
            return Result.fail(e)

    def load_all(self, include_inactive: bool = False) -> list[Document]:
        """Load every stored document, most recently edited first.

        Corrupt files are logged and skipped; soft-deleted documents are left
        out unless ``include_inactive`` is set.
        """
        if not self.root.is_dir():
            return []

        documents = []
        for path in sorted(self.root.glob(f"*{DOCUMENT_SUFFIX}")):
            result = self.try_load(path)
            if not result.success:
                logger.warning("Skipping %s: %s", path.name, result.error.to_dict())
                continue
            document = result.value
            if document.active or include_inactive:
                documents.append(document)

        documents.sort(key=lambda d: d.last_edited_at, reverse=True)
        logger.debug("Loaded %d documents from %s", len(documents), self.root)
        return documents

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create_document(self, author: str | None = None) -> Document:
        document = Document.new(author=author)
        self.save(document)
        return document

    def delete(self, document: Document) -> Path:
        """Soft delete: mark inactive and save. The file stays on disk."""
        document.active = False
        document.touch()
        return self.save(document)

    def permanently_delete(self, document_id: str) -> None:
        """Remove the document file and its backup."""
        path = self.document_path(document_id)
        if not path.exists():
            raise NotFoundError(
                f"Document not found: {document_id}",
                resource_type="document",
                resource_id=document_id,
            )
        try:
            path.unlink()
            self.backup_path(document_id).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to delete document {document_id}: {e}",
                operation="delete",
                path=str(path),
            ) from e
        logger.info("Permanently deleted document %s", document_id)

    def add_tags(self, document_id: str, tags: Iterable[str]) -> Document:
        """Merge tags from an external classifier into a stored document."""
        document = self.load_document(document_id)
        if document.merge_tags(tags):
            self.save(document)
        return document

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def file_size(self, document_id: str) -> int:
        path = self.document_path(document_id)
        try:
            return path.stat().st_size
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Document not found: {document_id}",
                resource_type="document",
                resource_id=document_id,
            ) from e

    def total_size(self) -> int:
        if not self.root.is_dir():
            return 0
        return sum(path.stat().st_size for path in self.root.glob(f"*{DOCUMENT_SUFFIX}"))

    def backup_count(self) -> int:
        if not self.root.is_dir():
            return 0
        return sum(1 for _ in self.root.glob(f"*{DOCUMENT_SUFFIX}{BACKUP_SUFFIX}"))

    def cleanup_backups(self) -> int:
        """Delete every backup sibling; returns how many were removed.

        Committed documents are left alone, so this only gives up the ability
        to recover from a save that fails later.
        """
        if not self.root.is_dir():
            return 0

        removed = 0
        for path in self.root.glob(f"*{DOCUMENT_SUFFIX}{BACKUP_SUFFIX}"):
            try:
                path.unlink()
            except OSError as e:
                raise StorageError(
                    f"Failed to remove backup {path.name}: {e}",
                    operation="cleanup_backups",
                    path=str(path),
                ) from e
            removed += 1
        logger.info("Removed %d backup files from %s", removed, self.root)
        return removed
