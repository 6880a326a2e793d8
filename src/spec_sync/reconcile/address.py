"""Reversible string addresses for locations inside a document tree.

An address is the dot-joined form of a segment list::

    ["paths", "/users/{id}", "get", "parameters", 0, "description"]
    <->  "paths./users/{id}.get.parameters.0.description"

Segments that start with ``/`` are literal URL-path keys.  They are
emitted verbatim and their internal slashes, braces and other characters
are never treated as structure: a ``/`` only opens a literal at the start
of a segment, and the literal runs until the next ``.`` separator.  Keys
such as ``application/json`` therefore stay a single segment as well.

Purely numeric segments decode to ``int`` (list indexes); everything else
decodes to ``str``.  ``decode(encode(s)) == s`` holds for any segment list
whose keys contain no ``.``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Union

Segment = Union[str, int]

SEPARATOR = "."


def encode(segments: Iterable[Segment]) -> str:
    """Join *segments* into an address string."""
    return SEPARATOR.join(str(segment) for segment in segments)


def decode(address: str) -> list[Segment]:
    """Split an address string back into its segments.

    Empty segments (``a..b``, a leading or trailing dot) are dropped.
    """
    segments: list[Segment] = []
    current: list[str] = []

    for char in address:
        if char == SEPARATOR:
            if current:
                segments.append(_coerce("".join(current)))
            current = []
        else:
            current.append(char)

    if current:
        segments.append(_coerce("".join(current)))

    return segments


def _coerce(raw: str) -> Segment:
    """Decode a single raw segment (canonical decimal digits -> ``int``)."""
    if raw.isascii() and raw.isdigit() and str(int(raw)) == raw:
        return int(raw)
    return raw


def format_segments(segments: Sequence[Segment]) -> str:
    """Human-readable form of *segments* for log and error messages."""
    return encode(segments) or "(root)"
