"""Unified configuration schema for spec_sync.

Defines Pydantic models for the config file structure with dedicated
sections for reconciliation behaviour and logging.

Usage:
    from spec_sync.config_loader import load_hierarchical_config
    from spec_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .reconcile.classifier import DEFAULT_ARTIFACT_MARKERS

logger = logging.getLogger(__name__)

ConflictStrategy = Literal["local-wins", "remote-wins", "interactive"]


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ReconcileConfig(BaseModel):
    """How remote changes are classified and merged.

    Pattern lists left as ``None`` use the built-in OpenAPI rules.
    """

    strict_mode: bool = Field(
        default=True,
        description="Treat unclassified paths as structural (blocked)",
    )
    conflict_strategy: ConflictStrategy = Field(
        default="local-wins",
        description="What to do with changes both sides made",
    )
    baseline_dir: str = Field(
        default=".sync-baselines",
        min_length=1,
        description="Baseline snapshot directory, relative to the spec",
    )
    backup: bool = Field(
        default=True,
        description="Back up the spec before overwriting it in place",
    )
    artifact_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ARTIFACT_MARKERS),
        description="Address substrings marking remote-only content",
    )
    structural_patterns: Optional[list[str]] = Field(
        default=None, description="Source-of-truth path patterns"
    )
    enrichment_patterns: Optional[list[str]] = Field(
        default=None, description="Bidirectional path patterns"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``"text"`` or ``"json"`` (one JSON object per line).
    """

    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log line format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
