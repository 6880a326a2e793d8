"""Change-set and sync report formatting functions.

Provides human-readable and machine-readable output:

- ``format_change_summary`` -- per-bucket counts plus a conflict flag.
- ``format_dry_run_preview`` -- every change grouped by bucket.
- ``format_merge_result`` -- applied and skipped changes of a merge.
- ``format_sync_report`` -- full post-sync summary.
- ``change_set_to_json`` / ``report_to_json`` -- structured dicts for
  ``--json`` output.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Change, ChangeSet, MergeResult, SyncReport

from .engine import ReconciliationEngine
from .models import EditKind

# Bucket attribute, display label.
_BUCKETS: tuple[tuple[str, str], ...] = (
    ("safe_to_sync", "Safe to sync"),
    ("needs_review", "Needs review"),
    ("blocked", "Blocked"),
    ("artifacts", "Artifacts"),
)

_PREVIEW_WIDTH = 60
_BLOCKED_LISTED = 5


def _preview(value: Any) -> str:
    """Compact one-line rendering of a document fragment."""
    text = json.dumps(value, ensure_ascii=False, default=str)
    if len(text) > _PREVIEW_WIDTH:
        return text[: _PREVIEW_WIDTH - 3] + "..."
    return text


def _change_line(change: Change) -> str:
    line = f"  {change.kind.value.upper():<6} {change.address}"
    if change.kind is not EditKind.DELETE:
        line += f" = {_preview(change.new_value)}"
    if change.has_conflict:
        line += "  (conflict)"
    return line


# ------------------------------------------------------------------
# Human-readable output
# ------------------------------------------------------------------


def format_change_summary(change_set: ChangeSet) -> str:
    """Format bucket counts, a conflict warning and the first blocked changes.

    Args:
        change_set: The categorised changes.

    Returns:
        Multi-line formatted string.
    """
    summary = ReconciliationEngine.get_summary(change_set)
    lines = [
        "Change Summary:",
        f"  Safe to sync: {summary.safe_to_sync}",
        f"  Needs review: {summary.needs_review}",
        f"  Blocked:      {summary.blocked}",
        f"  Artifacts:    {summary.artifacts}",
    ]
    if summary.has_conflicts:
        lines.append("  (!) Conflicts detected")

    if change_set.blocked:
        lines.append("")
        lines.append(
            "Blocked changes (structural changes cannot reverse-sync):"
        )
        for record in change_set.blocked[:_BLOCKED_LISTED]:
            lines.append(f"  - {record.address}: {record.reason}")
        if len(change_set.blocked) > _BLOCKED_LISTED:
            lines.append(
                f"  ... and {len(change_set.blocked) - _BLOCKED_LISTED} more"
            )

    return "\n".join(lines)


def format_dry_run_preview(change_set: ChangeSet) -> str:
    """Format every change grouped by bucket.

    Each change is shown as ``KIND address = value``.  Empty buckets are
    omitted.

    Args:
        change_set: The categorised changes.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = ["DRY RUN -- No changes will be made", ""]

    for attr, label in _BUCKETS:
        records = getattr(change_set, attr)
        if not records:
            continue
        lines.append(f"[{label.upper()}]")
        lines.extend(_change_line(record) for record in records)
        lines.append("")

    if change_set.is_empty:
        lines.append("No changes detected.")

    return "\n".join(lines).rstrip()


def format_merge_result(result: MergeResult) -> str:
    """Format the applied and skipped changes of a merge."""
    lines = [
        f"Applied: {len(result.applied)} changes",
        f"Skipped: {len(result.skipped)} changes",
    ]
    if result.applied:
        lines.append("")
        lines.append("Applied:")
        lines.extend(_change_line(change) for change in result.applied)
    if result.skipped:
        lines.append("")
        lines.append("Skipped:")
        for entry in result.skipped:
            lines.append(f"  {entry.change.address}: {entry.reason}")
    return "\n".join(lines)


def format_sync_report(report: SyncReport) -> str:
    """Format a complete sync report as human-readable text.

    Args:
        report: The completed sync report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"Reverse sync report for '{report.document_id}'"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append(f"Status: {report.status.value}")
    lines.append("")
    lines.append(format_change_summary(report.change_set))

    if report.applied or report.skipped:
        lines.append("")
        lines.append(f"Applied: {len(report.applied)} changes")
        lines.append(f"Skipped: {len(report.skipped)} changes")
        for entry in report.skipped:
            lines.append(f"  {entry.change.address}: {entry.reason}")

    if report.backup_path:
        lines.append(f"Backup: {report.backup_path}")
    if report.output_path:
        lines.append(f"Updated: {report.output_path}")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def _change_to_json(change: Change) -> dict:
    entry: dict = {
        "address": change.address,
        "kind": change.kind.value,
        "old_value": change.old_value,
        "new_value": change.new_value,
        "has_conflict": change.has_conflict,
    }
    direction = getattr(change, "direction", None)
    if direction is not None:
        entry["direction"] = direction.value
        entry["reason"] = change.reason
    return entry


def change_set_to_json(change_set: ChangeSet) -> dict:
    """Convert a change set to a structured dict for JSON serialisation.

    Returns:
        Dict with a ``summary`` section and one list per bucket.
    """
    summary = ReconciliationEngine.get_summary(change_set)
    data: dict = {"summary": summary.model_dump()}
    for attr, _label in _BUCKETS:
        data[attr] = [
            _change_to_json(record) for record in getattr(change_set, attr)
        ]
    return data


def report_to_json(report: SyncReport) -> dict:
    """Convert a sync report to a structured dict for JSON serialisation."""
    return {
        "document_id": report.document_id,
        "status": report.status.value,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "output_path": report.output_path,
        "backup_path": report.backup_path,
        "changes": change_set_to_json(report.change_set),
        "applied": [_change_to_json(change) for change in report.applied],
        "skipped": [
            {**_change_to_json(entry.change), "skip_reason": entry.reason}
            for entry in report.skipped
        ],
    }
