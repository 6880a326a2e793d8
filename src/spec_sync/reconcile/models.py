"""Pydantic models for the reconciliation engine.

Defines the data contracts passed between the core modules:

- ``EditKind``: Enum of atomic edit kinds (add, edit, delete).
- ``ChangeDirection``: Enum of change classes (structural, enrichment,
  artifact).
- ``Edit``: One atomic difference produced by the differ.
- ``Classification``: Result of classifying an address.
- ``ChangeRecord``: A classified, conflict-annotated remote edit.
- ``ChangeSet``: Change records partitioned into four buckets.
- ``ChangeSummary``: Per-bucket counts of a change set.
- ``SkippedChange`` / ``MergeResult``: Outcome of applying edits.
- ``SyncReport``: Outcome of one reverse-sync run.

All models are frozen (immutable).  Values held in ``before``/``after``
and ``old_value``/``new_value`` are Document fragments and are never
copied by the models themselves.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, model_validator

from .address import Segment, decode, encode


class EditKind(str, Enum):
    """Kind of an atomic edit."""

    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class ChangeDirection(str, Enum):
    """Where a change is allowed to flow."""

    STRUCTURAL = "structural"
    ENRICHMENT = "enrichment"
    ARTIFACT = "artifact"


def _fill_location(data: Any) -> Any:
    """Derive ``path`` from ``address`` or ``address`` from ``path``."""
    if not isinstance(data, dict):
        return data
    has_path = data.get("path") is not None
    has_address = data.get("address") is not None
    if has_path and not has_address:
        return {**data, "address": encode(data["path"])}
    if has_address and not has_path:
        return {**data, "path": tuple(decode(data["address"]))}
    return data


def _check_sides(kind: EditKind, before: Any, after: Any) -> None:
    """An ADD has no old side and a DELETE has no new side."""
    if kind is EditKind.ADD and before is not None:
        raise ValueError("an add has no value before the change")
    if kind is EditKind.DELETE and after is not None:
        raise ValueError("a delete has no value after the change")


class Edit(BaseModel):
    """A single atomic difference between two trees.

    ``before`` must be ``None`` for an ``ADD`` and ``after`` must be
    ``None`` for a ``DELETE``.

    Attributes:
        path: Segments from the document root to the changed location.
        address: Encoded form of ``path``.
        kind: ADD, EDIT or DELETE.
        before: Value in the base tree.
        after: Value in the compared tree.
    """

    path: tuple[Segment, ...]
    address: str
    kind: EditKind
    before: Any = None
    after: Any = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def fill_location(cls, data: Any) -> Any:
        return _fill_location(data)

    @model_validator(mode="after")
    def check_sides(self) -> "Edit":
        _check_sides(self.kind, self.before, self.after)
        return self

    @property
    def old_value(self) -> Any:
        return self.before

    @property
    def new_value(self) -> Any:
        return self.after

    @property
    def has_conflict(self) -> bool:
        """Plain edits never carry a conflict flag."""
        return False


class Classification(BaseModel):
    """Direction assigned to an address, with a human-readable reason.

    Attributes:
        direction: The change class.
        reason: Why the address got this class.
        pattern: The rule pattern that matched, if any.
    """

    direction: ChangeDirection
    reason: str
    pattern: Optional[str] = None

    model_config = {"frozen": True}


class ChangeRecord(BaseModel):
    """A remote edit after classification and conflict detection.

    Attributes:
        path: Segments from the document root to the changed location.
        address: Encoded form of ``path``; the join key between edit sets.
        kind: ADD, EDIT or DELETE.
        old_value: Value in the baseline.
        new_value: Value in the remote revision.
        direction: Change class assigned by the classifier.
        reason: Classifier explanation.
        has_conflict: ``True`` if the local revision edited the same address.
    """

    path: tuple[Segment, ...]
    address: str
    kind: EditKind
    old_value: Any = None
    new_value: Any = None
    direction: ChangeDirection
    reason: str = ""
    has_conflict: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def fill_location(cls, data: Any) -> Any:
        return _fill_location(data)

    @model_validator(mode="after")
    def check_sides(self) -> "ChangeRecord":
        _check_sides(self.kind, self.old_value, self.new_value)
        return self


Change = Union[ChangeRecord, Edit]


class ChangeSummary(BaseModel):
    """Counts per bucket of a ``ChangeSet``."""

    total: int
    safe_to_sync: int
    needs_review: int
    blocked: int
    artifacts: int
    has_conflicts: bool

    model_config = {"frozen": True}


class ChangeSet(BaseModel):
    """Remote changes partitioned by direction and conflict status.

    Attributes:
        safe_to_sync: Enrichment changes with no local edit at the address.
        needs_review: Enrichment changes that conflict with a local edit.
        blocked: Structural changes; never merged automatically.
        artifacts: Artifact-only changes (tests, scripts, extensions).
    """

    safe_to_sync: list[ChangeRecord] = []
    needs_review: list[ChangeRecord] = []
    blocked: list[ChangeRecord] = []
    artifacts: list[ChangeRecord] = []

    model_config = {"frozen": True}

    @property
    def all_changes(self) -> list[ChangeRecord]:
        """Every record, bucket by bucket."""
        return [
            *self.safe_to_sync,
            *self.needs_review,
            *self.blocked,
            *self.artifacts,
        ]

    @property
    def is_empty(self) -> bool:
        return not self.all_changes


class SkippedChange(BaseModel):
    """A change the merge did not apply, with the reason why."""

    change: Change
    reason: str

    model_config = {"frozen": True}


class MergeResult(BaseModel):
    """Result of applying a list of changes to a target document.

    Attributes:
        document: The new document (the target is never mutated).
        applied: Changes written, in input order.
        skipped: Changes not written, in input order, each with a reason.
    """

    document: Any
    applied: list[Change] = []
    skipped: list[SkippedChange] = []

    model_config = {"frozen": True}


class SyncStatus(str, Enum):
    """Outcome of one reverse-sync run."""

    DRY_RUN = "dry-run"
    NO_CHANGES = "no-changes"
    SYNCED = "synced"


class SyncReport(BaseModel):
    """Aggregate report for one reverse-sync run.

    Attributes:
        document_id: Identifier the remote document was fetched under.
        status: What the run did.
        dry_run: Whether this was a dry-run (nothing written).
        change_set: The categorised remote changes.
        summary: Counts of ``change_set``.
        applied: Changes written to the spec.
        skipped: Changes not written, with reasons.
        output_path: Where the merged spec was written.
        backup_path: Backup of the spec taken before writing in place.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    document_id: str
    status: SyncStatus
    dry_run: bool = False
    change_set: ChangeSet
    summary: ChangeSummary
    applied: list[Change] = []
    skipped: list[SkippedChange] = []
    output_path: Optional[str] = None
    backup_path: Optional[str] = None
    started_at: str
    completed_at: Optional[str] = None

    model_config = {"frozen": True}

    def summary_text(self) -> str:
        """Format a short multi-line summary of the run."""
        lines = [
            f"Reverse sync of '{self.document_id}': {self.status.value}",
            f"  Safe to sync:  {self.summary.safe_to_sync}",
            f"  Needs review:  {self.summary.needs_review}",
            f"  Blocked:       {self.summary.blocked}",
            f"  Artifacts:     {self.summary.artifacts}",
            f"  Applied:       {len(self.applied)}",
            f"  Skipped:       {len(self.skipped)}",
        ]
        return "\n".join(lines)
