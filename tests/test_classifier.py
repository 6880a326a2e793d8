"""Tests for reconcile/classifier.py — address classification rules.

Covers:
- Structural, enrichment and artifact classification with default rules
- Enrichment nested in structural sections
- Strict vs lenient defaults for unmatched addresses
- Pattern compilation (wildcards, partial globs, invalid patterns)
- Custom rule sets
"""

import pytest

from spec_sync.reconcile.classifier import (
    ClassificationRule,
    PathClassifier,
    compile_pattern,
    is_enrichment_within_structure,
)
from spec_sync.reconcile.errors import ValidationError
from spec_sync.reconcile.models import ChangeDirection

STRUCTURAL = ChangeDirection.STRUCTURAL
ENRICHMENT = ChangeDirection.ENRICHMENT
ARTIFACT = ChangeDirection.ARTIFACT


@pytest.fixture
def classifier():
    return PathClassifier()


# ---------------------------------------------------------------------------
# Default rules
# ---------------------------------------------------------------------------


class TestDefaultRules:
    @pytest.mark.parametrize(
        "address",
        [
            "openapi",
            "paths./tasks.post",
            "paths./tasks.get.responses.200.content.application/json.schema.type",
            "components.schemas.Task.properties.title",
            "components.securitySchemes.bearer.type",
            "servers.0.url",
            "security.0.bearer",
        ],
    )
    def test_structural(self, classifier, address):
        assert classifier.classify(address).direction is STRUCTURAL

    def test_structural_reason_names_pattern(self, classifier):
        result = classifier.classify("paths./tasks.post")

        assert result.reason == "Structural element: paths"
        assert result.pattern == "paths"

    @pytest.mark.parametrize(
        "address",
        [
            "paths./tasks.get.description",
            "paths./tasks.get.summary",
            "paths./tasks.get.responses.200.content.application/json.example",
            "paths./tasks.get.responses.200.content.application/json.example.0.title",
            "paths./tasks.get.requestBody.content.application/json.examples.ok.value",
            "components.schemas.Task.properties.id.description",
            "servers.0.description",
            "paths./tasks.get.externalDocs.url",
        ],
    )
    def test_enrichment_within_structure(self, classifier, address):
        result = classifier.classify(address)

        assert result.direction is ENRICHMENT
        assert result.reason == f"Enrichment within structure: {address}"

    def test_enrichment_field(self, classifier):
        result = classifier.classify("info.description")

        assert result.direction is ENRICHMENT
        assert result.reason == "Enrichment field: info.description"

    @pytest.mark.parametrize(
        "address", ["tags.0.description", "info.contact.email", "externalDocs.url"]
    )
    def test_enrichment_patterns_cover_subtrees(self, classifier, address):
        assert classifier.classify(address).direction is ENRICHMENT

    @pytest.mark.parametrize(
        "address, marker",
        [
            ("x-postman-id", "x-postman"),
            ("info.x-tests.smoke", "x-tests"),
            ("item.0.event.0.listen", "event"),
            ("collection.prerequest-script", "script"),
        ],
    )
    def test_artifact_markers(self, classifier, address, marker):
        result = classifier.classify(address)

        assert result.direction is ARTIFACT
        assert result.reason == f"Test or script content: {marker}"

    def test_marker_matches_inside_words(self, classifier):
        # "description" contains "script"
        assert classifier.classify("description").direction is ARTIFACT

    def test_structural_wins_over_artifact(self, classifier):
        result = classifier.classify("paths./tasks.get.x-postman-meta")

        assert result.direction is STRUCTURAL

    def test_segment_list_accepted(self, classifier):
        result = classifier.classify(["paths", "/tasks", "get", "summary"])

        assert result.direction is ENRICHMENT
        assert result.reason == "Enrichment within structure: paths./tasks.get.summary"

    def test_empty_address_rejected(self, classifier):
        with pytest.raises(ValidationError):
            classifier.classify("")


# ---------------------------------------------------------------------------
# Unmatched addresses
# ---------------------------------------------------------------------------


class TestUnmatched:
    def test_strict_defaults_to_structural(self):
        result = PathClassifier(strict_mode=True).classify("info.title")

        assert result.direction is STRUCTURAL
        assert result.reason == "Unclassified - defaulting to structural (strict mode)"
        assert result.pattern is None

    def test_lenient_defaults_to_enrichment(self):
        result = PathClassifier(strict_mode=False).classify("info.title")

        assert result.direction is ENRICHMENT
        assert result.reason == "Unclassified - allowing in lenient mode"

    def test_lenient_does_not_unblock_structure(self):
        result = PathClassifier(strict_mode=False).classify("paths./tasks.post")

        assert result.direction is STRUCTURAL


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


class TestPatterns:
    def test_wildcard_consumes_one_segment(self):
        rule = ClassificationRule("tags.*.description", ENRICHMENT)

        assert rule.matches(["tags", 3, "description"])
        assert not rule.matches(["tags", "description"])

    def test_prefix_match_covers_descendants(self):
        rule = ClassificationRule("components.schemas", STRUCTURAL)

        assert rule.matches(["components", "schemas", "Task", "type"])
        assert not rule.matches(["components"])
        assert not rule.matches(["components", "examples"])

    def test_partial_glob(self):
        rule = ClassificationRule("x-*", ARTIFACT)

        assert rule.matches(["x-internal", "notes"])
        assert not rule.matches(["info"])

    def test_glob_special_characters_escaped(self):
        rule = ClassificationRule("a+b*", STRUCTURAL)

        assert rule.matches(["a+bc"])
        assert not rule.matches(["aabc"])

    @pytest.mark.parametrize("pattern", ["", "a..b", ".a", "a."])
    def test_invalid_pattern(self, pattern):
        with pytest.raises(ValueError, match="Invalid classification pattern"):
            compile_pattern(pattern)

    def test_custom_rule_sets(self):
        classifier = PathClassifier(
            structural_patterns=["channels"],
            enrichment_patterns=["info.*"],
            artifact_markers=["x-internal"],
        )

        assert classifier.classify("channels.user").direction is STRUCTURAL
        assert classifier.classify("paths./tasks.post").direction is STRUCTURAL
        assert classifier.classify("info.title").direction is ENRICHMENT
        assert classifier.classify("x-internal.id").direction is ARTIFACT
        assert classifier.classify("event.id").reason.startswith("Unclassified")


class TestIsEnrichmentWithinStructure:
    def test_root_field_is_not_within_structure(self):
        assert not is_enrichment_within_structure(["description"])

    def test_trailing_documentation_field(self):
        assert is_enrichment_within_structure(["paths", "/a", "get", "summary"])

    def test_documentation_subtree(self):
        assert is_enrichment_within_structure(["paths", "/a", "examples", "ok", "value"])

    def test_plain_structure(self):
        assert not is_enrichment_within_structure(["paths", "/a", "get", "operationId"])
