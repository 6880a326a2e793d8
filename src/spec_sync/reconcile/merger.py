"""Apply approved changes to a document.

``MergeApplier.apply()`` works on a deep copy of the target and returns a
``MergeResult`` with the new document and ordered ``applied``/``skipped``
lists.  The target itself is never modified.

Key behaviours:

* Conflicting changes are handed to the resolver for the chosen strategy
  (``local-wins`` skips them, ``remote-wins`` and ``interactive`` apply
  them).
* Missing intermediate containers are created on the way down: a list
  when the next segment is an index, a mapping otherwise.  Deletes never
  create containers; deleting beneath a missing parent does nothing.
* A change that cannot be written (e.g. its address runs through a
  scalar) is recorded in ``skipped`` with the error message and leaves
  no trace in the document; the remaining changes are still applied.
* Deleting a list element leaves a hole that is compacted once every
  change has been applied, so positional addresses computed against the
  same base stay valid for the whole batch.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from .address import Segment, format_segments
from .errors import ApplicationError
from .models import Change, EditKind, MergeResult, SkippedChange
from .resolver import LOCAL_WINS, create_resolver

logger = logging.getLogger(__name__)


class _Hole:
    """Placeholder for a deleted list element until compaction."""

    def __repr__(self) -> str:
        return "<deleted>"


_HOLE: Any = _Hole()
_ABSENT: Any = object()


class MergeApplier:
    """Apply change lists onto documents.  Stateless."""

    def apply(
        self,
        target: Any,
        changes: Iterable[Change],
        conflict_strategy: str = LOCAL_WINS,
    ) -> MergeResult:
        """Apply *changes* in order to a copy of *target*.

        Args:
            target: The document to merge into (left untouched).
            changes: Change records or plain edits, in application order.
            conflict_strategy: ``"local-wins"``, ``"remote-wins"`` or
                ``"interactive"``.

        Returns:
            The merged document plus applied and skipped changes.

        Raises:
            ValueError: If *conflict_strategy* is not recognised.
        """
        resolver = create_resolver(conflict_strategy)
        document = copy.deepcopy(target)
        applied: list[Change] = []
        skipped: list[SkippedChange] = []

        for change in changes:
            if change.has_conflict:
                reason = resolver.resolve(change)
                if reason is not None:
                    skipped.append(SkippedChange(change=change, reason=reason))
                    continue

            try:
                apply_change(document, change)
            except Exception as exc:
                logger.warning(
                    "Could not apply %s at %s: %s",
                    change.kind.value,
                    change.address,
                    exc,
                )
                skipped.append(
                    SkippedChange(change=change, reason=f"Failed to apply: {exc}")
                )
                continue
            applied.append(change)

        _compact(document)
        logger.info(
            "Merge applied %d changes, skipped %d", len(applied), len(skipped)
        )
        return MergeResult(document=document, applied=applied, skipped=skipped)


def apply_change(document: Any, change: Change) -> None:
    """Write one change into *document* in place.

    A change that fails leaves *document* as it was: containers created
    on the way down are removed again before the error propagates.  A
    delete whose parent is already gone does nothing.

    Raises:
        ApplicationError: If the change's address cannot be walked or
            written.
    """
    path = tuple(change.path)
    if not path:
        raise ApplicationError("Cannot apply a change with an empty address")

    if change.kind is EditKind.DELETE:
        parent = _find_parent(document, path)
        if parent is _ABSENT:
            logger.debug("Nothing to delete at %s", change.address)
        else:
            _remove(parent, path[-1], path)
        return

    created: list[tuple[Any, Segment, Any]] = []
    try:
        current = document
        for depth in range(len(path) - 1):
            current = _descend(
                current, path[depth], path[depth + 1], path[: depth + 1], created
            )
        _assign(current, path[-1], copy.deepcopy(change.new_value), path)
    except Exception:
        _undo(created)
        raise


# ---------------------------------------------------------------------------
# Walking helpers
# ---------------------------------------------------------------------------


def _empty_container(next_segment: Segment) -> Any:
    return [] if isinstance(next_segment, int) else {}


def _resolve_key(mapping: dict, segment: Segment) -> Any:
    """Find the mapping key an address segment refers to.

    Numeric segments decode to ``int`` while document keys are strings
    (``responses.200``), so both spellings are tried.
    """
    if segment in mapping:
        return segment
    text = str(segment)
    if text in mapping or not isinstance(segment, str):
        return text
    return segment


def _check_index(
    sequence: list, segment: Segment, where: Sequence[Segment]
) -> int:
    if not isinstance(segment, int):
        raise ApplicationError(
            f"Cannot use key '{segment}' on a list at {format_segments(where)}"
        )
    if segment > len(sequence):
        raise ApplicationError(
            f"List index {segment} out of range (length {len(sequence)}) "
            f"at {format_segments(where)}"
        )
    return segment


def _descend(
    current: Any,
    segment: Segment,
    next_segment: Segment,
    where: Sequence[Segment],
    created: list[tuple[Any, Segment, Any]],
) -> Any:
    """Step one segment down, creating the child container if missing.

    Every container created is recorded in *created* as
    ``(parent, key, previous)`` so ``_undo`` can take it out again.
    """
    match current:
        case dict():
            key = _resolve_key(current, segment)
            if key not in current:
                current[key] = _empty_container(next_segment)
                created.append((current, key, _ABSENT))
            return current[key]
        case list():
            index = _check_index(current, segment, where)
            if index == len(current):
                current.append(_empty_container(next_segment))
                created.append((current, index, _ABSENT))
            elif current[index] is _HOLE:
                current[index] = _empty_container(next_segment)
                created.append((current, index, _HOLE))
            return current[index]
        case _:
            raise _not_a_container(current, where)


def _undo(created: list[tuple[Any, Segment, Any]]) -> None:
    for parent, key, previous in reversed(created):
        if previous is not _ABSENT:
            parent[key] = previous
        elif isinstance(parent, list):
            parent.pop()
        else:
            del parent[key]


def _find_parent(document: Any, path: Sequence[Segment]) -> Any:
    """Walk to the container holding ``path[-1]`` without creating anything.

    Returns ``_ABSENT`` when a mapping key or list element on the way is
    missing.
    """
    current = document
    for depth, segment in enumerate(path[:-1]):
        match current:
            case dict():
                current = current.get(_resolve_key(current, segment), _ABSENT)
            case list():
                if not isinstance(segment, int):
                    raise ApplicationError(
                        f"Cannot use key '{segment}' on a list at "
                        f"{format_segments(path[:depth + 1])}"
                    )
                current = current[segment] if segment < len(current) else _ABSENT
            case _:
                raise _not_a_container(current, path[: depth + 1])
        if current is _ABSENT or current is _HOLE:
            return _ABSENT
    return current


def _not_a_container(value: Any, where: Sequence[Segment]) -> ApplicationError:
    return ApplicationError(
        f"Cannot descend into {type(value).__name__} value at "
        f"{format_segments(where[:-1])}"
    )


def _assign(
    container: Any, segment: Segment, value: Any, path: Sequence[Segment]
) -> None:
    match container:
        case dict():
            container[_resolve_key(container, segment)] = value
        case list():
            index = _check_index(container, segment, path)
            if index == len(container):
                container.append(value)
            else:
                container[index] = value
        case _:
            raise ApplicationError(
                f"Cannot set a field on {type(container).__name__} value at "
                f"{format_segments(path[:-1])}"
            )


def _remove(container: Any, segment: Segment, path: Sequence[Segment]) -> None:
    match container:
        case dict():
            container.pop(_resolve_key(container, segment), None)
        case list():
            index = _check_index(container, segment, path)
            if index < len(container):
                container[index] = _HOLE
        case _:
            raise ApplicationError(
                f"Cannot delete a field from {type(container).__name__} "
                f"value at {format_segments(path[:-1])}"
            )


def _compact(node: Any) -> None:
    """Drop list holes left by deletions, recursively and in place."""
    match node:
        case dict():
            for value in node.values():
                _compact(value)
        case list():
            node[:] = [item for item in node if item is not _HOLE]
            for item in node:
                _compact(item)
