"""Baseline snapshot persistence.

Stores the last successfully merged document for each spec so the next
run has a common ancestor for its three-way comparison.  Snapshots live
in a baseline directory next to the spec (``.sync-baselines/`` by
default), one JSON file per spec: ``{name}.baseline.json``.

Key design choices:

* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Canonical hashing** -- ``document_hash()`` hashes compact JSON with
  key insertion order preserved, so two documents hash equal exactly when
  they serialise identically.
* **Corrupt files are misses** -- an unreadable baseline is logged and
  treated as absent; the caller then falls back to the local document.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

BASELINE_FORMAT_VERSION = 1


class BaselineStore:
    """Load and save baseline snapshots.

    Args:
        state_dir: Directory holding the snapshot files.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = Path(state_dir)

    @classmethod
    def beside(cls, spec_path: Path, baseline_dir: str) -> BaselineStore:
        """Store rooted at ``<spec dir>/<baseline_dir>``."""
        return cls(Path(spec_path).parent / baseline_dir)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self, name: str) -> Any | None:
        """Return the stored document for *name*, or ``None`` if absent."""
        path = self.path_for(name)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Could not load baseline %s: %s", path, exc)
            return None
        if not isinstance(data, dict) or "document" not in data:
            logger.warning("Baseline %s has an unexpected layout", path)
            return None
        return data["document"]

    def save(self, name: str, document: Any) -> Path:
        """Persist *document* as the baseline for *name* atomically.

        Creates the state directory if it does not exist.

        Returns:
            Path of the written snapshot.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": BASELINE_FORMAT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "hash": document_hash(document),
            "document": document,
        }

        target = self.path_for(name)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._state_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, target)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Saved baseline %s", target)
        return target

    def path_for(self, name: str) -> Path:
        """Return the snapshot path for *name*."""
        return self._state_dir / f"{name}.baseline.json"


def document_hash(document: Any) -> str:
    """SHA-256 hex digest of *document*'s compact, order-preserving JSON."""
    canonical = json.dumps(
        document, separators=(",", ":"), ensure_ascii=False
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
