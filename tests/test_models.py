"""Tests for reconcile/models.py — edit and record construction.

Covers:
- address/path derivation
- kind/value consistency for ADD and DELETE
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from spec_sync.reconcile.models import (
    ChangeDirection,
    ChangeRecord,
    Edit,
    EditKind,
)


class TestEdit:
    def test_path_derived_from_address(self):
        edit = Edit(address="responses.200.description", kind=EditKind.EDIT)

        assert edit.path == ("responses", 200, "description")

    def test_address_derived_from_path(self):
        edit = Edit(path=("tags", 0), kind=EditKind.ADD, after="a")

        assert edit.address == "tags.0"

    def test_add_with_before_rejected(self):
        with pytest.raises(PydanticValidationError, match="add has no value before"):
            Edit(address="a", kind=EditKind.ADD, before=1, after=2)

    def test_delete_with_after_rejected(self):
        with pytest.raises(PydanticValidationError, match="delete has no value after"):
            Edit(address="a", kind=EditKind.DELETE, before=1, after=2)

    def test_edit_may_carry_null_values(self):
        edit = Edit(address="a", kind=EditKind.EDIT, before=None, after=None)

        assert edit.old_value is None
        assert edit.new_value is None


class TestChangeRecord:
    def test_delete_with_new_value_rejected(self):
        with pytest.raises(PydanticValidationError):
            ChangeRecord(
                address="x-tests",
                kind=EditKind.DELETE,
                old_value=["smoke"],
                new_value=["smoke"],
                direction=ChangeDirection.ARTIFACT,
            )

    def test_add_record(self):
        record = ChangeRecord(
            address="paths./a.post",
            kind=EditKind.ADD,
            new_value={"summary": "Create"},
            direction=ChangeDirection.STRUCTURAL,
        )

        assert record.path == ("paths", "/a", "post")
        assert record.old_value is None
