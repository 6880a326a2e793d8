"""Three-way reconciliation of a baseline, a local and a remote document.

The ``ReconciliationEngine``:

1. Diffs baseline -> remote (the changes being considered for import).
2. Diffs baseline -> local (the changes already made on this side).
3. Classifies every remote edit by address.
4. Flags a conflict when the local side edited the exact same address.
5. Routes each record into one of the four ``ChangeSet`` buckets.

Conflict detection compares exact addresses only: a local edit to a
container and a remote edit to a field beneath it are not flagged.

The engine is pure computation and never mutates its inputs.
"""

from __future__ import annotations

import logging
from typing import Any

from .classifier import PathClassifier
from .differ import check_root, diff
from .models import (
    ChangeDirection,
    ChangeRecord,
    ChangeSet,
    ChangeSummary,
)

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Compare three revisions of a document and categorise remote changes.

    Args:
        classifier: Path classifier to use; a strict-mode default is
            created when omitted.
    """

    def __init__(self, classifier: PathClassifier | None = None) -> None:
        self.classifier = classifier or PathClassifier()

    def reconcile(self, baseline: Any, local: Any, remote: Any) -> ChangeSet:
        """Categorise the remote changes against baseline and local.

        Args:
            baseline: Last reconciled common ancestor.
            local: Current local revision.
            remote: Current remote revision.

        Returns:
            A ``ChangeSet``; each bucket keeps the differ's discovery order.

        Raises:
            ValidationError: If any of the three documents is malformed.
        """
        check_root(baseline, "baseline")
        check_root(local, "local")
        check_root(remote, "remote")

        remote_edits = diff(baseline, remote)
        local_edits = diff(baseline, local)
        local_addresses = {edit.address for edit in local_edits}

        buckets: dict[str, list[ChangeRecord]] = {
            "safe_to_sync": [],
            "needs_review": [],
            "blocked": [],
            "artifacts": [],
        }

        for edit in remote_edits:
            classification = self.classifier.classify(edit.path)
            has_conflict = edit.address in local_addresses
            record = ChangeRecord(
                path=edit.path,
                address=edit.address,
                kind=edit.kind,
                old_value=edit.before,
                new_value=edit.after,
                direction=classification.direction,
                reason=classification.reason,
                has_conflict=has_conflict,
            )
            bucket = _bucket_for(classification.direction, has_conflict)
            buckets[bucket].append(record)
            logger.debug(
                "%s %s -> %s (%s)%s",
                edit.kind.value,
                edit.address,
                bucket,
                classification.reason,
                " [conflict]" if has_conflict else "",
            )

        change_set = ChangeSet(**buckets)
        logger.info(
            "Reconciled %d remote / %d local edits: %d safe, %d review, "
            "%d blocked, %d artifacts",
            len(remote_edits),
            len(local_edits),
            len(change_set.safe_to_sync),
            len(change_set.needs_review),
            len(change_set.blocked),
            len(change_set.artifacts),
        )
        return change_set

    @staticmethod
    def get_summary(change_set: ChangeSet) -> ChangeSummary:
        """Count the records in each bucket of *change_set*."""
        return ChangeSummary(
            total=len(change_set.all_changes),
            safe_to_sync=len(change_set.safe_to_sync),
            needs_review=len(change_set.needs_review),
            blocked=len(change_set.blocked),
            artifacts=len(change_set.artifacts),
            has_conflicts=any(
                record.has_conflict for record in change_set.needs_review
            ),
        )


def _bucket_for(direction: ChangeDirection, has_conflict: bool) -> str:
    if direction is ChangeDirection.ENRICHMENT:
        return "needs_review" if has_conflict else "safe_to_sync"
    if direction is ChangeDirection.ARTIFACT:
        return "artifacts"
    return "blocked"
