"""
Config file discovery and loading for spec_sync.

A config file is YAML with two optional sections, ``reconcile`` and
``logging``.  Pattern lists tend to be shared between projects, so a file
may pull any value from another file with ``!include``::

    reconcile:
      structural_patterns: !include ../shared/structural.yml
      baseline_dir: "${SPEC_SYNC_SNAPSHOTS:-.sync-baselines}"

Several files may apply at once (``--config``, ``SPEC_SYNC_CONFIG``, the
project directory, the user directory).  The more specific file replaces
whole sections of the less specific one; ``${VAR}`` references are
expanded once the sections are combined.

Usage:
    from spec_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SPEC_SYNC_CONFIG"

PROJECT_CONFIG_NAMES = ("config.yml", "config.yaml")

# ${NAME} or ${NAME:-fallback}
_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")


# ---------------------------------------------------------------------------
# ${VAR} expansion
# ---------------------------------------------------------------------------


def expand_env_refs(text: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` in *text*.

    An unset or empty variable expands to its fallback, or to ``""`` when
    there is none.  An unterminated ``${`` is kept as written.
    """
    return _ENV_REF.sub(
        lambda ref: os.environ.get(ref["name"]) or (ref["fallback"] or ""),
        text,
    )


def expand_config_tree(node: Any) -> Any:
    """Return *node* with every string inside it passed through ``expand_env_refs``."""
    match node:
        case str():
            return expand_env_refs(node)
        case dict():
            return {key: expand_config_tree(value) for key, value in node.items()}
        case list():
            return [expand_config_tree(item) for item in node]
        case _:
            return node


# ---------------------------------------------------------------------------
# YAML reading with !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that resolves ``!include`` relative to the file being read.

    Each loader knows the chain of files that led to it, so a file that
    includes itself (directly or through others) is reported instead of
    recursing forever.  Registering the tag here keeps ``yaml.safe_load``
    unaware of it.
    """

    def __init__(self, stream, chain: tuple[Path, ...]) -> None:
        super().__init__(stream)
        self.chain = chain

    def construct_include(self, node: yaml.ScalarNode) -> Any:
        current = self.chain[-1]
        target = Path(self.construct_scalar(node))
        if not target.is_absolute():
            target = current.parent / target
        target = target.resolve()

        if target in self.chain:
            trail = " -> ".join(str(p) for p in (*self.chain, target))
            raise ValueError(f"Circular include detected: {trail}")
        if not target.exists():
            raise FileNotFoundError(
                f"Include file not found: {target} (referenced from {current})"
            )
        return read_config_file(target, self.chain)


ConfigLoader.add_constructor("!include", ConfigLoader.construct_include)


def read_config_file(path: Path, chain: tuple[Path, ...] = ()) -> Any:
    """Parse one YAML config file, following its ``!include`` tags.

    Returns whatever the document holds; callers check that it is a mapping.
    """
    path = Path(path).resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh, (*chain, path))
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery and layering
# ---------------------------------------------------------------------------


def _candidate_paths(explicit: Path | None) -> list[Path]:
    candidates = []
    if explicit is not None:
        explicit = Path(explicit).expanduser().resolve()
        if not explicit.exists():
            raise FileNotFoundError(f"Config file not found: {explicit}")
        candidates.append(explicit)

    if env_path := os.environ.get(CONFIG_ENV_VAR):
        candidates.append(Path(env_path).expanduser().resolve())

    project_dir = Path.cwd() / ".spec_sync"
    candidates.extend(project_dir / name for name in PROJECT_CONFIG_NAMES)
    candidates.append(Path.home() / ".config" / "spec_sync" / "config.yml")
    return candidates


def discover_config_files(explicit: Path | None = None) -> list[Path]:
    """List the config files that apply, most specific first.

    Looked up in this order:

    1. *explicit* (``--config``); raises ``FileNotFoundError`` if missing
    2. the file named by ``SPEC_SYNC_CONFIG``
    3. ``.spec_sync/config.yml`` then ``.spec_sync/config.yaml`` under CWD
    4. ``~/.config/spec_sync/config.yml``

    Files that do not exist are left out, and a file reached twice is
    listed once.
    """
    found: list[Path] = []
    for path in _candidate_paths(explicit):
        if path.exists() and path not in found:
            found.append(path)
    return found


def load_hierarchical_config(explicit: Path | None = None) -> dict[str, Any]:
    """Combine every discovered config file into one raw section mapping.

    Sections from a more specific file replace the same sections of a
    less specific one wholesale; sections are not merged key by key.
    With no config files at all the result is ``{}``.
    """
    sections: dict[str, Any] = {}
    for path in reversed(discover_config_files(explicit)):
        logger.debug("Reading config file %s", path)
        try:
            data = read_config_file(path)
        except Exception:
            logger.exception("Could not read config file %s", path)
            raise

        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring config file %s: expected a mapping, got %s",
                path,
                type(data).__name__,
            )
            continue
        sections.update(data)

    if not sections:
        logger.debug("No config found, using defaults")
    return expand_config_tree(sections)
