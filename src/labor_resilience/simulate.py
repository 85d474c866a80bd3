# ---------------------------------------------------------------------------
# labor_resilience.simulate — Seeded demo observations
# ---------------------------------------------------------------------------
from __future__ import annotations

from collections.abc import Sequence
from datetime import date

import numpy as np

from .config import DEFAULT_INDUSTRIES, FREQUENCIES, MEASURE_FIELDS, SIMULATION_RANGES
from .errors import ValidationError
from .forecast import future_periods
from .store import Observation


def simulate_observations(
    seed: int,
    *,
    entities: Sequence[str] = DEFAULT_INDUSTRIES,
    start: date = date(2010, 1, 1),
    n_periods: int = 11,
    frequency: str = 'annual',
) -> list[Observation]:
    """Draw uniform integer labor-market counts per entity and period.

    Uses a private generator seeded with *seed*, so identical arguments
    always return identical observations and no global random state is
    touched.

    Parameters
    ----------
    seed : int
        Generator seed.
    entities : sequence of str
        Entity labels (default: five illustrative industries).
    start : date
        First period.
    n_periods : int
        Periods per entity.
    frequency : ``'annual'`` | ``'monthly'``
        Spacing between consecutive periods.

    Returns
    -------
    list[Observation]
        Entity-major, period-ascending.
    """
    if frequency not in FREQUENCIES:
        raise ValidationError(f'Unknown frequency {frequency!r}')
    if n_periods < 0:
        raise ValidationError(f'n_periods must be non-negative, got {n_periods}')

    rng = np.random.default_rng(seed)
    periods = ([start] + future_periods(start, frequency, n_periods - 1))[:n_periods]

    observations: list[Observation] = []
    for entity in entities:
        draws = {
            name: rng.integers(*SIMULATION_RANGES[name], size=n_periods, endpoint=True)
            for name in MEASURE_FIELDS
        }
        for t, period in enumerate(periods):
            observations.append(
                Observation(
                    entity=entity,
                    period=period,
                    **{name: float(draws[name][t]) for name in MEASURE_FIELDS},
                )
            )
    return observations
