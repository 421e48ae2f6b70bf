"""Tests for errors.py - structured error hierarchy."""

from __future__ import annotations

import pytest

from notebloc.errors import (
    CorruptFileError,
    InvariantViolationError,
    NoteblocError,
    NotFoundError,
    Result,
    StorageError,
    ValidationError,
)


class TestErrorHierarchy:
    def test_all_derive_from_base(self) -> None:
        for cls in (NotFoundError, InvariantViolationError, ValidationError, CorruptFileError, StorageError):
            assert issubclass(cls, NoteblocError)

    def test_recoverable_flags(self) -> None:
        assert NotFoundError("x").recoverable is False
        assert ValidationError("x").recoverable is False
        assert CorruptFileError("x").recoverable is False
        assert InvariantViolationError("x").recoverable is True
        assert StorageError("x").recoverable is True

    def test_not_found_to_dict(self) -> None:
        error = NotFoundError("Block not found: b1", resource_type="block", resource_id="b1")

        assert error.to_dict() == {
            "type": "notfound",
            "message": "Block not found: b1",
            "recoverable": False,
            "resource_type": "block",
            "resource_id": "b1",
        }

    def test_none_context_values_are_dropped(self) -> None:
        assert NotFoundError("gone").to_dict() == {
            "type": "notfound",
            "message": "gone",
            "recoverable": False,
        }

    def test_invariant_in_context(self) -> None:
        error = InvariantViolationError("last block", invariant="non_empty")

        assert error.invariant == "non_empty"
        assert error.context == {"invariant": "non_empty"}

    def test_validation_value_is_truncated(self) -> None:
        error = ValidationError("bad", field="id", value="x" * 150)

        assert error.context["value"] == "x" * 100 + "..."

    def test_str_is_message(self) -> None:
        assert str(StorageError("disk full", operation="save")) == "disk full"


class TestResult:
    def test_ok(self) -> None:
        result = Result.ok(5)

        assert result.success
        assert result.unwrap() == 5
        assert result.unwrap_or(0) == 5

    def test_fail(self) -> None:
        error = NotFoundError("missing")
        result: Result[int] = Result.fail(error)

        assert not result.success
        assert result.unwrap_or(0) == 0
        with pytest.raises(NotFoundError):
            result.unwrap()

