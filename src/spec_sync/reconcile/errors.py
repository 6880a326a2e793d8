"""Exception taxonomy for the reconciliation core.

- ``ValidationError``: the input tree (or address) is malformed.  Raised
  immediately and aborts the whole call.
- ``ApplicationError``: a single edit could not be written while merging.
  The ``MergeApplier`` always catches it and records the edit as skipped.
"""

from __future__ import annotations


class ReconcileError(Exception):
    """Base class for all reconciliation errors."""


class ValidationError(ReconcileError):
    """A document or address is not something the core can work with."""


class ApplicationError(ReconcileError):
    """An edit could not be applied to the target document."""
