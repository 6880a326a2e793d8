"""Runtime configuration with CLI and environment overrides.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    SPEC_SYNC_CONFLICT_STRATEGY: local-wins, remote-wins or interactive
    SPEC_SYNC_STRICT_MODE: Block unclassified paths (true/false)
    SPEC_SYNC_BASELINE_DIR: Baseline directory relative to the spec
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config_loader import load_hierarchical_config
from .config_schema import (
    LoggingConfig,
    ReconcileConfig,
    UnifiedConfig,
    build_config,
)

logger = logging.getLogger(__name__)


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    cli_overrides: dict | None = None,
    config_path: Path | None = None,
    raw: dict | None = None,
) -> UnifiedConfig:
    """Load configuration with unified precedence.

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        cli_overrides: Values from CLI flags.  Recognised keys:
            ``conflict_strategy``, ``strict_mode``, ``baseline_dir``,
            ``backup``, ``log_file``, ``log_format``, ``log_level``.
            ``None`` values are ignored.
        config_path: Explicit config file, searched before the
            conventional locations.
        raw: Pre-loaded config dict; skips file discovery when given.

    Returns:
        Validated ``UnifiedConfig`` instance.

    Raises:
        ValueError: If a value is invalid after all sources are applied
            (pydantic's ``ValidationError`` is a ``ValueError``).
    """
    if raw is None:
        raw = load_hierarchical_config(config_path)
    unified = build_config(raw)
    overrides = {
        k: v for k, v in (cli_overrides or {}).items() if v is not None
    }

    # --- reconcile section: CLI > env > YAML > default ---

    reconcile = unified.reconcile.model_dump()

    env_strategy = os.getenv("SPEC_SYNC_CONFLICT_STRATEGY")
    if env_strategy:
        reconcile["conflict_strategy"] = env_strategy.strip()

    env_strict = get_bool_env("SPEC_SYNC_STRICT_MODE")
    if env_strict is not None:
        reconcile["strict_mode"] = env_strict

    env_baseline = os.getenv("SPEC_SYNC_BASELINE_DIR")
    if env_baseline:
        reconcile["baseline_dir"] = env_baseline.strip()

    for key in ("conflict_strategy", "strict_mode", "baseline_dir", "backup"):
        if key in overrides:
            reconcile[key] = overrides[key]

    # --- logging section: CLI > YAML > default ---

    logging_section = unified.logging.model_dump()
    for cli_key, key in (
        ("log_file", "file"),
        ("log_format", "format"),
        ("log_level", "level"),
    ):
        if cli_key in overrides:
            logging_section[key] = overrides[cli_key]

    config = UnifiedConfig(
        reconcile=ReconcileConfig(**reconcile),
        logging=LoggingConfig(**logging_section),
    )
    logger.debug(
        "Effective config: strategy=%s strict=%s baseline_dir=%s",
        config.reconcile.conflict_strategy,
        config.reconcile.strict_mode,
        config.reconcile.baseline_dir,
    )
    return config
