"""Structural diff of two document trees.

``diff(base, compare)`` returns the flat list of atomic edits that turn
*base* into *compare*:

* Scalars (or a missing side) produce one edit when they differ.  Scalars
  compare by strict equality: ``True`` and ``1`` differ, ``1`` and ``1.0``
  do not.
* Lists are compared position by position up to the longer length;
  positions past the end of one side are ADD or DELETE edits.
* Mappings recurse over the union of keys: base's keys in base's order,
  then keys new in *compare* in compare's order.
* A container whose kind differs between the two sides (mapping vs list,
  container vs scalar) is replaced as a whole with one edit at its own
  address.  Nothing inside it is visited.

There is no move or rename detection: a renamed key is one DELETE plus one
ADD.
"""

from __future__ import annotations

import logging
from typing import Any

from .address import Segment, format_segments
from .errors import ValidationError
from .models import Edit, EditKind

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, int, float, bool, type(None))


class _Missing:
    """Marker for a location that does not exist on one side."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING: Any = _Missing()


def diff(base: Any, compare: Any) -> list[Edit]:
    """Compute the edits between two document roots.

    Args:
        base: The reference document (a mapping or a list).
        compare: The document to compare against *base*; same root kind.

    Returns:
        Edits in discovery order.  Empty when the trees are deep-equal.

    Raises:
        ValidationError: If a root is not a container, the two roots are
            different kinds of container, or a node has an unsupported type.
    """
    check_root(base, "base")
    check_root(compare, "compare")
    if isinstance(base, dict) != isinstance(compare, dict):
        raise ValidationError(
            f"Document roots differ in kind: {type(base).__name__} vs "
            f"{type(compare).__name__}"
        )

    edits: list[Edit] = []
    _diff_node(base, compare, (), edits)
    logger.debug("Diff produced %d edits", len(edits))
    return edits


def check_root(document: Any, label: str = "document") -> None:
    """Raise ``ValidationError`` unless *document* is a mapping or list."""
    if not isinstance(document, (dict, list)):
        raise ValidationError(
            f"The {label} document root must be a mapping or a list, "
            f"got {type(document).__name__}"
        )


def _diff_node(
    base: Any,
    compare: Any,
    path: tuple[Segment, ...],
    edits: list[Edit],
) -> None:
    if base is compare and base is not MISSING:
        _check_subtree(base, path)
        return

    match (base, compare):
        case (dict(), dict()):
            _diff_mapping(base, compare, path, edits)
        case (list(), list()):
            _diff_sequence(base, compare, path, edits)
        case (dict() | list(), _) | (_, dict() | list()):
            _check_subtree(base, path)
            _check_subtree(compare, path)
            edits.append(_make_edit(path, base, compare))
        case _:
            _check_scalar(base, path)
            _check_scalar(compare, path)
            if not _scalars_equal(base, compare):
                edits.append(_make_edit(path, base, compare))


def _diff_mapping(
    base: dict,
    compare: dict,
    path: tuple[Segment, ...],
    edits: list[Edit],
) -> None:
    keys = list(base)
    keys.extend(key for key in compare if key not in base)
    for key in keys:
        _check_key(key, path)
        _diff_node(
            base.get(key, MISSING),
            compare.get(key, MISSING),
            path + (key,),
            edits,
        )


def _diff_sequence(
    base: list,
    compare: list,
    path: tuple[Segment, ...],
    edits: list[Edit],
) -> None:
    for index in range(max(len(base), len(compare))):
        _diff_node(
            base[index] if index < len(base) else MISSING,
            compare[index] if index < len(compare) else MISSING,
            path + (index,),
            edits,
        )


def _make_edit(path: tuple[Segment, ...], base: Any, compare: Any) -> Edit:
    if base is MISSING:
        return Edit(path=path, kind=EditKind.ADD, after=compare)
    if compare is MISSING:
        return Edit(path=path, kind=EditKind.DELETE, before=base)
    return Edit(path=path, kind=EditKind.EDIT, before=base, after=compare)


def _scalars_equal(left: Any, right: Any) -> bool:
    if left is MISSING or right is MISSING:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    return left == right


# ---------------------------------------------------------------------------
# Shape validation
# ---------------------------------------------------------------------------


def _check_scalar(value: Any, path: tuple[Segment, ...]) -> None:
    if value is MISSING or isinstance(value, SCALAR_TYPES):
        return
    raise ValidationError(
        f"Unsupported value of type {type(value).__name__} at "
        f"{format_segments(path)}"
    )


def _check_key(key: Any, path: tuple[Segment, ...]) -> None:
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise ValidationError(
            f"Mapping key {key!r} under {format_segments(path)} must be a "
            f"string or an integer"
        )


def _check_subtree(node: Any, path: tuple[Segment, ...]) -> None:
    """Validate a subtree that is emitted or skipped without recursion."""
    match node:
        case dict():
            for key, value in node.items():
                _check_key(key, path)
                _check_subtree(value, path + (key,))
        case list():
            for index, value in enumerate(node):
                _check_subtree(value, path + (index,))
        case _:
            _check_scalar(node, path)
