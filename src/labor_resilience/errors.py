"""Error taxonomy for the labor_resilience core.

Every failure is an input-data problem: nothing here performs I/O, so
nothing is transient and nothing is retried.  All errors subclass
``ValueError`` so callers that already guard data validation with
``except ValueError`` keep working.
"""

from __future__ import annotations


class ResilienceError(ValueError):
    """Base class for labor_resilience errors."""


class ValidationError(ResilienceError):
    """Malformed input: negative or non-finite counts, unorderable periods,
    duplicate periods, unknown fields, or invalid call arguments."""


class InsufficientDataError(ResilienceError):
    """Too few observations to fit a model or compute a statistic."""


class FitError(ResilienceError):
    """The model search exhausted its candidates without an accepted fit."""
