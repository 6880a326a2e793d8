"""Reverse-sync workflow: pull remote enrichment back into a local spec.

``SpecSync.run()`` ties the codec, baseline store, engine and merge
applier into one pass:

1. Load the local spec from disk.
2. Fetch the remote document from the ``RemoteStore``.
3. Load the baseline for this spec, falling back to the local document
   when no baseline exists yet (first sync).
4. Reconcile baseline, local and remote.
5. On a dry run, stop and report.
6. Apply the ``safe_to_sync`` bucket onto the local document, together
   with the ``needs_review`` changes the conflict strategy lets through:
   all of them for ``remote-wins``, the caller-approved addresses for
   ``interactive``, none for ``local-wins``.
7. Back up the spec when overwriting it in place, write the merged
   document and save it as the new baseline.

Blocked and artifact changes are reported but never written.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from collections.abc import Iterable
from typing import Any, Protocol

from ..config_schema import ReconcileConfig
from .baseline import BaselineStore
from .classifier import PathClassifier
from .codec import DocumentCodec
from .engine import ReconciliationEngine
from .differ import diff
from .merger import MergeApplier
from .models import ChangeRecord, ChangeSet, SyncReport, SyncStatus
from .resolver import INTERACTIVE, REMOTE_WINS

logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    """Source of remote documents."""

    def fetch(self, document_id: str) -> Any:
        """Return the remote document (a parsed tree or its text)."""
        ...  # pragma: no cover


class FileRemoteStore:
    """Remote documents exported to local files.

    *document_id* is a file path, resolved against *root* when relative.
    """

    def __init__(self, root: Path | None = None, codec: DocumentCodec | None = None) -> None:
        self.root = Path(root) if root is not None else None
        self.codec = codec or DocumentCodec()

    def fetch(self, document_id: str) -> Any:
        path = Path(document_id)
        if self.root is not None and not path.is_absolute():
            path = self.root / path
        logger.debug("Fetching remote document from %s", path)
        return self.codec.read(path)


def build_classifier(config: ReconcileConfig) -> PathClassifier:
    """Create a ``PathClassifier`` from the reconcile config section."""
    return PathClassifier(
        strict_mode=config.strict_mode,
        structural_patterns=config.structural_patterns,
        enrichment_patterns=config.enrichment_patterns,
        artifact_markers=config.artifact_markers,
    )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SpecSync:
    """Run reverse syncs for local spec files.

    Args:
        store: Where remote documents are fetched from.
        config: Reconcile settings (strategy, strict mode, baselines).
        codec: Document codec; a default one is created when omitted.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: ReconcileConfig | None = None,
        codec: DocumentCodec | None = None,
    ) -> None:
        self.store = store
        self.config = config or ReconcileConfig()
        self.codec = codec or DocumentCodec()
        self.engine = ReconciliationEngine(build_classifier(self.config))
        self.applier = MergeApplier()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(
        self,
        spec_path: Path,
        document_id: str,
        dry_run: bool = False,
        output_path: Path | None = None,
        approved: Iterable[str] = (),
    ) -> SyncReport:
        """Reverse-sync one spec.

        Args:
            spec_path: The local spec file.
            document_id: Identifier passed to the remote store.
            dry_run: If ``True``, reconcile and report without writing.
            output_path: Write the merged spec here instead of in place.
            approved: Addresses of needs-review changes the user accepted;
                only consulted under the ``interactive`` strategy.

        Returns:
            A ``SyncReport`` describing what was (or would be) done.

        Raises:
            ValidationError: If any document has a malformed tree.
            ValueError: If the configured conflict strategy is unknown.
            OSError: If the spec cannot be read or written.
        """
        started_at = _now()
        spec_path = Path(spec_path)

        local = self.codec.read(spec_path)
        remote = self.store.fetch(document_id)
        if isinstance(remote, str):
            remote = self.codec.parse(remote)

        baselines = BaselineStore.beside(spec_path, self.config.baseline_dir)
        baseline = baselines.load(spec_path.stem)
        if baseline is None:
            logger.info(
                "No baseline for %s, using the local spec as baseline",
                spec_path.name,
            )
            baseline = local

        change_set = self.engine.reconcile(baseline, local, remote)
        summary = self.engine.get_summary(change_set)

        if dry_run:
            return SyncReport(
                document_id=document_id,
                status=SyncStatus.DRY_RUN,
                dry_run=True,
                change_set=change_set,
                summary=summary,
                started_at=started_at,
                completed_at=_now(),
            )

        for record in change_set.blocked:
            logger.warning(
                "Blocked structural change at %s: %s",
                record.address,
                record.reason,
            )

        to_apply = self._select_changes(change_set, set(approved), baseline, remote)
        if not to_apply:
            logger.info("No safe changes to sync for %s", spec_path.name)
            return SyncReport(
                document_id=document_id,
                status=SyncStatus.NO_CHANGES,
                change_set=change_set,
                summary=summary,
                started_at=started_at,
                completed_at=_now(),
            )

        result = self.applier.apply(
            local,
            to_apply,
            conflict_strategy=self.config.conflict_strategy,
        )

        target = Path(output_path) if output_path is not None else spec_path
        backup_path = None
        if self.config.backup and target.resolve() == spec_path.resolve():
            backup_path = self.codec.backup(spec_path)

        self.codec.write(result.document, target)
        baselines.save(spec_path.stem, result.document)
        logger.info(
            "Reverse sync of %s wrote %d changes to %s",
            document_id,
            len(result.applied),
            target,
        )

        return SyncReport(
            document_id=document_id,
            status=SyncStatus.SYNCED,
            change_set=change_set,
            summary=summary,
            applied=result.applied,
            skipped=result.skipped,
            output_path=str(target),
            backup_path=str(backup_path) if backup_path else None,
            started_at=started_at,
            completed_at=_now(),
        )

    def _select_changes(
        self,
        change_set: ChangeSet,
        approved: set[str],
        baseline: Any,
        remote: Any,
    ) -> list[ChangeRecord]:
        """Pick the records to merge, in the order the differ found them."""
        strategy = self.config.conflict_strategy
        if strategy == REMOTE_WINS:
            reviewed = list(change_set.needs_review)
        elif strategy == INTERACTIVE:
            reviewed = [r for r in change_set.needs_review if r.address in approved]
        else:
            reviewed = []

        if not reviewed:
            return list(change_set.safe_to_sync)

        order = {edit.address: i for i, edit in enumerate(diff(baseline, remote))}
        return sorted(
            [*change_set.safe_to_sync, *reviewed], key=lambda r: order[r.address]
        )
