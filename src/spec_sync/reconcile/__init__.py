"""Three-way reconciliation of structured API specs.

Public API for deciding which remote edits to a spec document may be
merged back into the local source of truth.

Architecture
------------
A change is found by diffing each side against a shared **baseline**
(the last reconciled revision).  Remote edits are classified by their
address into *structural*, *enrichment* or *artifact* changes; only
enrichment that the local side has not also touched is safe to merge.

Modules:

- ``address``     -- encode/decode dot-separated document addresses.
- ``differ``      -- ``diff()``: ordered edit list between two trees.
- ``classifier``  -- ``PathClassifier``: rule-based address classes.
- ``engine``      -- ``ReconciliationEngine``: builds the ``ChangeSet``.
- ``merger``      -- ``MergeApplier``: applies changes to a copy.
- ``resolver``    -- conflict strategies (local-wins, remote-wins,
  interactive).
- ``codec``       -- YAML/JSON reading, writing and backups.
- ``baseline``    -- ``BaselineStore``: atomic baseline snapshots.
- ``reporter``    -- human-readable and JSON report formatting.
- ``workflow``    -- ``SpecSync``: the end-to-end reverse sync (import it
  from ``spec_sync.reconcile.workflow``).

Usage example
-------------
::

    from spec_sync.reconcile import (
        MergeApplier,
        ReconciliationEngine,
        format_change_summary,
    )

    engine = ReconciliationEngine()
    change_set = engine.reconcile(baseline, local, remote)
    print(format_change_summary(change_set))

    result = MergeApplier().apply(local, change_set.safe_to_sync)
"""

from .address import decode, encode
from .classifier import PathClassifier
from .differ import diff
from .engine import ReconciliationEngine
from .errors import ApplicationError, ReconcileError, ValidationError
from .merger import MergeApplier
from .models import (
    ChangeDirection,
    ChangeRecord,
    ChangeSet,
    ChangeSummary,
    Classification,
    Edit,
    EditKind,
    MergeResult,
    SkippedChange,
    SyncReport,
    SyncStatus,
)
from .reporter import (
    change_set_to_json,
    format_change_summary,
    format_dry_run_preview,
    format_merge_result,
    format_sync_report,
    report_to_json,
)

__all__ = [
    "ApplicationError",
    "ChangeDirection",
    "ChangeRecord",
    "ChangeSet",
    "ChangeSummary",
    "Classification",
    "Edit",
    "EditKind",
    "MergeApplier",
    "MergeResult",
    "PathClassifier",
    "ReconcileError",
    "ReconciliationEngine",
    "SkippedChange",
    "SyncReport",
    "SyncStatus",
    "ValidationError",
    "change_set_to_json",
    "decode",
    "diff",
    "encode",
    "format_change_summary",
    "format_dry_run_preview",
    "format_merge_result",
    "format_sync_report",
    "report_to_json",
]
