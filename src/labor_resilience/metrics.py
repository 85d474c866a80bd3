# ---------------------------------------------------------------------------
# labor_resilience.metrics — Employment change, volatility, and resilience
# ---------------------------------------------------------------------------
"""Per-entity scalar metrics over the observation store.

Undefined statistics are ``None`` throughout (and null in frames); they are
never replaced by zero.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date

import numpy as np
import polars as pl

from .store import Observation, ObservationStore


@dataclass(frozen=True)
class DerivedObservation:
    """An observation together with its period-over-period employment change."""

    observation: Observation
    employment_change: float | None

    @property
    def entity(self) -> str:
        return self.observation.entity

    @property
    def period(self) -> date:
        return self.observation.period


@dataclass(frozen=True)
class MetricResult:
    """Volatility and resilience for one entity.

    Parameters
    ----------
    entity : str
        Entity label.
    volatility : float or None
        Sample standard deviation of the defined employment changes;
        ``None`` with fewer than two.
    resilience : float or None
        Mean of the defined hires values; ``None`` when there are none.
    n_changes : int
        Number of defined employment changes used for *volatility*.
    n_hires : int
        Number of defined hires values used for *resilience*.
    """

    entity: str
    volatility: float | None
    resilience: float | None
    n_changes: int = 0
    n_hires: int = 0


def _defined(values: Iterable[float | None]) -> list[float]:
    """Drop ``None`` and NaN entries."""
    out = []
    for v in values:
        if v is None:
            continue
        v = float(v)
        if math.isnan(v):
            continue
        out.append(v)
    return out


def compute_employment_change(series: Sequence[Observation]) -> list[DerivedObservation]:
    """Attach the change in employment level versus the preceding period.

    *series* must already be ordered by period (as returned by
    :meth:`ObservationStore.series_for`).  The first element, and any
    element where either level is missing, gets ``None``.
    """
    derived: list[DerivedObservation] = []
    prev: float | None = None
    for i, obs in enumerate(series):
        level = obs.employment_level
        if i == 0 or level is None or prev is None:
            change = None
        else:
            change = level - prev
        derived.append(DerivedObservation(observation=obs, employment_change=change))
        prev = level
    return derived


def compute_volatility(changes: Iterable[float | None]) -> float | None:
    """Sample standard deviation (ddof=1) of the defined changes.

    Returns ``None`` for fewer than two defined values: a single change
    has no variance, which is not the same as zero variance.
    """
    values = _defined(changes)
    if len(values) < 2:
        return None
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=1))


def compute_resilience(hires: Iterable[float | None]) -> float | None:
    """Arithmetic mean of the defined hires values, or ``None`` if empty.

    Summation is exactly rounded, so the result does not depend on order.
    """
    values = _defined(hires)
    if not values:
        return None
    return math.fsum(values) / len(values)


def compute_metrics(store: ObservationStore) -> dict[str, MetricResult]:
    """Compute volatility and resilience for every entity in *store*."""
    results: dict[str, MetricResult] = {}
    for entity in sorted(store.entities_of()):
        series = store.series_for(entity)
        changes = [d.employment_change for d in compute_employment_change(series)]
        hires = [obs.hires for obs in series]
        results[entity] = MetricResult(
            entity=entity,
            volatility=compute_volatility(changes),
            resilience=compute_resilience(hires),
            n_changes=len(_defined(changes)),
            n_hires=len(_defined(hires)),
        )
    return results


def employment_change_frame(store: ObservationStore) -> pl.DataFrame:
    """Store frame with an ``employment_change`` column, per entity.

    Equivalent to :func:`compute_employment_change` applied to every
    entity, as a single polars frame sorted by entity then period.
    """
    return (
        store.frame.sort('entity', 'period')
        .with_columns(
            pl.col('employment_level').diff().over('entity').alias('employment_change')
        )
    )


def metrics_frame(metrics: Mapping[str, MetricResult]) -> pl.DataFrame:
    """Tabular view of :func:`compute_metrics` output, sorted by entity."""
    rows = [
        {
            'entity': m.entity,
            'volatility': m.volatility,
            'resilience': m.resilience,
            'n_changes': m.n_changes,
            'n_hires': m.n_hires,
        }
        for m in metrics.values()
    ]
    schema = {
        'entity': pl.Utf8,
        'volatility': pl.Float64,
        'resilience': pl.Float64,
        'n_changes': pl.Int64,
        'n_hires': pl.Int64,
    }
    return pl.DataFrame(rows, schema=schema).sort('entity')
