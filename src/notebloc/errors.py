"""notebloc Error Hierarchy.

Provides a structured error hierarchy for the editing core:
- NoteblocError: Base exception for all engine errors
- NotFoundError: Block or document id absent (desynchronized caller)
- InvariantViolationError: Mutation rejected because it would break the model
- ValidationError: Pre-save invariant check failed
- CorruptFileError: A stored document could not be deserialized
- StorageError: Write/rename failure in the persistence layer

Each error type includes:
- Descriptive message
- Optional fields for context
- Recoverable flag for retry logic
- Structured representation for callers that surface errors

Usage:
    from notebloc.errors import NotFoundError, InvariantViolationError

    if index is None:
        raise NotFoundError("Block not found", resource_type="block", resource_id=block_id)

    if len(blocks) == 1:
        raise InvariantViolationError("Cannot remove the last block", invariant="non_empty")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Result Type for Explicit Success/Failure
# =============================================================================


@dataclass
class Result(Generic[T]):
    """Structured result that makes success/failure explicit.

    Use when callers need to distinguish between "not found" and "error".
    For simpler cases, prefer raising exceptions or returning Optional[T].

    Usage:
        def try_load(store, doc_id) -> Result[Document]:
            try:
                return Result.ok(store.load_document(doc_id))
            except NoteblocError as e:
                return Result.fail(e)
    """

    success: bool
    value: T | None = None
    error: "NoteblocError | None" = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: "NoteblocError") -> "Result[T]":
        """Create a failed result."""
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """Get value or raise the error.

        Raises:
            NoteblocError: If this is a failed result.
        """
        if self.success:
            return self.value  # type: ignore
        if self.error:
            raise self.error
        raise NoteblocError("Result failed with no error")

    def unwrap_or(self, default: T) -> T:
        """Get value or return default."""
        if self.success:
            return self.value  # type: ignore
        return default


# =============================================================================
# Error Base Class
# =============================================================================


class NoteblocError(Exception):
    """Base exception for all notebloc errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the operation can be retried
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured dictionary."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Model Errors
# =============================================================================


class NotFoundError(NoteblocError):
    """Block or document not found.

    From the caller's perspective this is a programming error: the UI and
    the model have drifted apart. It is never swallowed.
    """

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvariantViolationError(NoteblocError):
    """A mutation would break a document invariant and was rejected.

    The document is left unchanged.

    Example:
        raise InvariantViolationError("Cannot remove the last block", invariant="non_empty")
    """

    def __init__(
        self,
        message: str,
        *,
        invariant: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if invariant:
            context["invariant"] = invariant
        super().__init__(message, recoverable=True, context=context)
        self.invariant = invariant


# =============================================================================
# Persistence Errors
# =============================================================================


class ValidationError(NoteblocError):
    """A document failed the pre-save invariant check.

    The save is aborted and nothing is written; the document stays in memory.

    Example:
        raise ValidationError("Duplicate block ids", field="blocks", constraint="unique_ids")
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        if constraint:
            context["constraint"] = constraint
        if value is not None:
            context["value"] = _truncate(str(value), 100)
        super().__init__(message, recoverable=False, context=context)
        self.field = field
        self.constraint = constraint


class CorruptFileError(NoteblocError):
    """A stored document could not be deserialized.

    Bulk loading skips the file and carries on with the rest.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={
                "path": _truncate(path, 200) if path else None,
                "reason": _truncate(reason, 200) if reason else None,
            },
        )
        self.path = path
        self.reason = reason


class StorageError(NoteblocError):
    """Errors in the persistence layer (write, rename, remove).

    Raised after backup restoration has been attempted. Recoverable: the
    next autosave tick simply tries again.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        path: str | None = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        if operation:
            context["operation"] = operation
        if path:
            context["path"] = _truncate(path, 200)
        super().__init__(message, recoverable=True, context=context, **kwargs)
        self.operation = operation


# =============================================================================
# Helpers
# =============================================================================


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."
