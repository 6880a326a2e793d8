"""Path classification rules for reverse sync.

Every changed address is assigned a ``ChangeDirection``:

- ``STRUCTURAL``: the local spec is the source of truth (paths, schemas,
  security, servers).  Remote changes here are never merged back.
- ``ENRICHMENT``: descriptive content (descriptions, summaries, examples)
  that may flow in either direction.
- ``ARTIFACT``: content that only exists on the remote side (tests,
  scripts, ``x-postman`` extensions).

Rules are evaluated in a fixed priority order and the first match wins:

1. Structural patterns.  A match is re-labelled ``ENRICHMENT`` when the
   address ends in a documentation field (``description``, ``summary``,
   ``example``, ``examples``, ``externalDocs``) or runs through an
   ``example``/``examples``/``externalDocs`` value.
2. Enrichment patterns.
3. Artifact markers, matched as substrings of the encoded address.
4. The default: ``STRUCTURAL`` in strict mode, ``ENRICHMENT`` otherwise.

Patterns are dot-separated.  ``*`` consumes exactly one address segment;
a segment containing ``*`` (``x-*``) is matched against a single address
segment as a glob.  A pattern also matches every address below it, so
``components.schemas`` covers the whole schemas subtree.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Union

from .address import Segment, decode, encode
from .errors import ValidationError
from .models import ChangeDirection, Classification

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURAL_PATTERNS: tuple[str, ...] = (
    "openapi",
    "paths",
    "components.schemas",
    "components.securitySchemes",
    "components.parameters",
    "components.requestBodies",
    "components.responses",
    "components.headers",
    "servers",
    "security",
)

DEFAULT_ENRICHMENT_PATTERNS: tuple[str, ...] = (
    "info.description",
    "info.contact",
    "info.license",
    "info.termsOfService",
    "externalDocs",
    "tags.*.description",
    "tags.*.externalDocs",
    "paths.*.*.summary",
    "paths.*.*.description",
    "paths.*.*.externalDocs",
    "paths.*.*.parameters.*.description",
    "paths.*.*.parameters.*.example",
    "paths.*.*.parameters.*.examples",
    "paths.*.*.requestBody.description",
    "paths.*.*.requestBody.content.*.example",
    "paths.*.*.requestBody.content.*.examples",
    "paths.*.*.responses.*.description",
    "paths.*.*.responses.*.content.*.example",
    "paths.*.*.responses.*.content.*.examples",
    "components.schemas.*.description",
    "components.schemas.*.properties.*.description",
    "components.schemas.*.properties.*.example",
)

DEFAULT_ARTIFACT_MARKERS: tuple[str, ...] = (
    "x-postman",
    "x-tests",
    "event",
    "script",
)

DOCUMENTATION_FIELDS = frozenset(
    {"description", "summary", "example", "examples", "externalDocs"}
)

# Everything beneath these is documentation too (e.g. examples.0.title).
DOCUMENTATION_SUBTREES = frozenset({"example", "examples", "externalDocs"})

WILDCARD = "*"


# ---------------------------------------------------------------------------
# Compiled pattern segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LiteralSegment:
    """Matches one address segment equal to ``text``."""

    text: str

    def matches(self, segment: Segment) -> bool:
        return str(segment) == self.text


@dataclass(frozen=True)
class WildcardSegment:
    """Matches any single address segment."""

    def matches(self, segment: Segment) -> bool:
        return True


@dataclass(frozen=True)
class PartialWildcardSegment:
    """Matches one address segment against a glob such as ``x-*``."""

    regex: re.Pattern[str]

    def matches(self, segment: Segment) -> bool:
        return self.regex.fullmatch(str(segment)) is not None


PatternSegment = Union[LiteralSegment, WildcardSegment, PartialWildcardSegment]


def compile_pattern(pattern: str) -> tuple[PatternSegment, ...]:
    """Compile a dot-separated pattern into segment matchers.

    Raises:
        ValueError: If *pattern* is empty or has an empty segment.
    """
    parts = pattern.split(".")
    if not pattern or any(part == "" for part in parts):
        raise ValueError(f"Invalid classification pattern: '{pattern}'")

    compiled: list[PatternSegment] = []
    for part in parts:
        if part == WILDCARD:
            compiled.append(WildcardSegment())
        elif WILDCARD in part:
            regex = ".*".join(re.escape(chunk) for chunk in part.split(WILDCARD))
            compiled.append(PartialWildcardSegment(re.compile(regex)))
        else:
            compiled.append(LiteralSegment(part))
    return tuple(compiled)


@dataclass(frozen=True)
class ClassificationRule:
    """A pattern and the direction it assigns.

    Attributes:
        pattern: Dot-separated pattern source.
        direction: Direction assigned to matching addresses.
        segments: Compiled matchers (built from ``pattern``).
    """

    pattern: str
    direction: ChangeDirection
    segments: tuple[PatternSegment, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", compile_pattern(self.pattern))

    def matches(self, path: Sequence[Segment]) -> bool:
        """Return ``True`` if the rule covers *path* or one of its ancestors."""
        if len(path) < len(self.segments):
            return False
        return all(
            matcher.matches(segment)
            for matcher, segment in zip(self.segments, path)
        )


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class PathClassifier:
    """Assign a ``ChangeDirection`` to document addresses.

    Args:
        strict_mode: Classify unmatched addresses as structural (``True``)
            or as enrichment (``False``).
        structural_patterns: Source-of-truth patterns; defaults to the
            OpenAPI structural sections.
        enrichment_patterns: Patterns that may flow in both directions.
        artifact_markers: Substrings identifying remote-only content.
    """

    def __init__(
        self,
        strict_mode: bool = True,
        structural_patterns: Iterable[str] | None = None,
        enrichment_patterns: Iterable[str] | None = None,
        artifact_markers: Iterable[str] | None = None,
    ) -> None:
        self.strict_mode = strict_mode
        self.structural_rules = [
            ClassificationRule(pattern, ChangeDirection.STRUCTURAL)
            for pattern in (
                DEFAULT_STRUCTURAL_PATTERNS
                if structural_patterns is None
                else structural_patterns
            )
        ]
        self.enrichment_rules = [
            ClassificationRule(pattern, ChangeDirection.ENRICHMENT)
            for pattern in (
                DEFAULT_ENRICHMENT_PATTERNS
                if enrichment_patterns is None
                else enrichment_patterns
            )
        ]
        self.artifact_markers = tuple(
            DEFAULT_ARTIFACT_MARKERS
            if artifact_markers is None
            else artifact_markers
        )

    def classify(self, address: str | Sequence[Segment]) -> Classification:
        """Classify one address.

        Args:
            address: Encoded address string or its segment list.

        Returns:
            The direction and the reason it was chosen.

        Raises:
            ValidationError: If the address has no segments.
        """
        if isinstance(address, str):
            path = decode(address)
            text = address
        else:
            path = list(address)
            text = encode(path)
        if not path:
            raise ValidationError("Cannot classify an empty address")

        for rule in self.structural_rules:
            if rule.matches(path):
                if is_enrichment_within_structure(path):
                    return Classification(
                        direction=ChangeDirection.ENRICHMENT,
                        reason=f"Enrichment within structure: {text}",
                        pattern=rule.pattern,
                    )
                return Classification(
                    direction=ChangeDirection.STRUCTURAL,
                    reason=f"Structural element: {rule.pattern}",
                    pattern=rule.pattern,
                )

        for rule in self.enrichment_rules:
            if rule.matches(path):
                return Classification(
                    direction=ChangeDirection.ENRICHMENT,
                    reason=f"Enrichment field: {rule.pattern}",
                    pattern=rule.pattern,
                )

        for marker in self.artifact_markers:
            if marker in text:
                return Classification(
                    direction=ChangeDirection.ARTIFACT,
                    reason=f"Test or script content: {marker}",
                )

        if self.strict_mode:
            return Classification(
                direction=ChangeDirection.STRUCTURAL,
                reason="Unclassified - defaulting to structural (strict mode)",
            )
        return Classification(
            direction=ChangeDirection.ENRICHMENT,
            reason="Unclassified - allowing in lenient mode",
        )


def is_enrichment_within_structure(path: Sequence[Segment]) -> bool:
    """Return ``True`` for documentation content nested in a structure.

    The root segment itself never counts: ``description`` at the top of a
    document is not "within" anything.
    """
    if len(path) < 2:
        return False
    if path[-1] in DOCUMENTATION_FIELDS:
        return True
    return any(segment in DOCUMENTATION_SUBTREES for segment in path[1:])
