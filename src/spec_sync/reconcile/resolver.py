"""Conflict resolution strategies for the merge applier.

Provides the three strategies a caller may choose:

- ``LocalWinsResolver``: Skips every conflicting change.
- ``RemoteWinsResolver``: Applies every change, conflicting or not.
- ``InteractiveResolver``: Applies what it is given.  The caller is
  expected to have asked the user and pre-filtered the change list; this
  module never prompts.

The ``create_resolver()`` factory maps config strategy strings to resolver
instances.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .models import Change

logger = logging.getLogger(__name__)

LOCAL_WINS = "local-wins"
REMOTE_WINS = "remote-wins"
INTERACTIVE = "interactive"

LOCAL_WINS_REASON = "conflict — local wins"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ConflictResolver(Protocol):
    """Protocol that all conflict resolvers must satisfy."""

    def resolve(self, change: Change) -> str | None:
        """Decide whether a conflicting change is applied.

        Args:
            change: A change whose ``has_conflict`` flag is set.

        Returns:
            ``None`` to apply the change, or the reason it is skipped.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------


class LocalWinsResolver:
    """Always keep the local value on conflict."""

    def resolve(self, change: Change) -> str | None:
        """Always skip."""
        logger.debug("Conflict at %s: keeping local value", change.address)
        return LOCAL_WINS_REASON


class RemoteWinsResolver:
    """Always take the remote value on conflict."""

    def resolve(self, change: Change) -> str | None:
        """Always apply."""
        logger.debug("Conflict at %s: taking remote value", change.address)
        return None


class InteractiveResolver:
    """Apply the caller's pre-approved conflicting changes."""

    def resolve(self, change: Change) -> str | None:
        """Apply; the caller already decided."""
        logger.info(
            "Conflict at %s applied as approved by caller", change.address
        )
        return None


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_STRATEGY_MAP: dict[str, type] = {
    LOCAL_WINS: LocalWinsResolver,
    REMOTE_WINS: RemoteWinsResolver,
    INTERACTIVE: InteractiveResolver,
}

STRATEGIES = tuple(_STRATEGY_MAP)


def create_resolver(strategy: str) -> ConflictResolver:
    """Create a conflict resolver for the given strategy string.

    Args:
        strategy: One of ``"local-wins"``, ``"remote-wins"``,
            ``"interactive"``.

    Returns:
        A ``ConflictResolver`` implementation instance.

    Raises:
        ValueError: If the strategy string is not recognised.
    """
    cls = _STRATEGY_MAP.get(strategy)
    if cls is None:
        raise ValueError(
            f"Unknown conflict strategy: '{strategy}'. Valid strategies: {sorted(_STRATEGY_MAP.keys())}"
        )
    return cls()  # type: ignore[no-any-return]
