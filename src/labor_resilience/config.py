# ---------------------------------------------------------------------------
# labor_resilience.config — Frequencies, search bounds, and project constants
# ---------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

# ---------------------------------------------------------------------------
# Observation fields
# ---------------------------------------------------------------------------

MEASURE_FIELDS: tuple[str, ...] = (
    'employment_level',
    'job_openings',
    'hires',
    'separations',
)

# ---------------------------------------------------------------------------
# Frequencies
# ---------------------------------------------------------------------------

Frequency = Literal['annual', 'monthly']

# Seasonal period per declared frequency
FREQUENCIES: dict[str, int] = {
    'annual': 1,
    'monthly': 12,
}

# Two-sided prediction-interval coverage
DEFAULT_CONFIDENCE = 0.95

# ---------------------------------------------------------------------------
# Policy thresholds
# ---------------------------------------------------------------------------

VOLATILITY_THRESHOLD = 3000.0  # jobs, sample std of period-over-period change
RESILIENCE_THRESHOLD = 5000.0  # mean hires per period

# ---------------------------------------------------------------------------
# Simulation defaults
# ---------------------------------------------------------------------------

DEFAULT_INDUSTRIES: tuple[str, ...] = (
    'Manufacturing',
    'Healthcare',
    'Retail',
    'Technology',
    'Construction',
)

# Inclusive integer ranges drawn per (industry, period)
SIMULATION_RANGES: dict[str, tuple[int, int]] = {
    'employment_level': (50_000, 200_000),
    'job_openings': (1_000, 10_000),
    'hires': (1_000, 8_000),
    'separations': (1_000, 8_000),
}


# ---------------------------------------------------------------------------
# Auto-ARIMA search bounds
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArimaSearchConfig:
    """Bounds and tests for the automatic (p,d,q)(P,D,Q,m) order search.

    Every knob of the search is explicit so that callers can narrow or
    widen it; the defaults follow the classical stepwise procedure.

    Parameters
    ----------
    max_p, max_q : int
        Upper bounds for the non-seasonal AR and MA orders.
    max_d : int
        Maximum number of non-seasonal differences.
    max_P, max_Q : int
        Upper bounds for the seasonal AR and MA orders.
    max_D : int
        Maximum number of seasonal differences.
    max_order : int
        Upper bound on p + q + P + Q in the grid search; the stepwise
        search is bounded by the per-term maxima only.
    stepwise : bool
        Neighbourhood search when True, exhaustive grid otherwise.
    max_models : int
        Cap on the number of candidate fits.
    information_criterion : ``'aicc'`` | ``'aic'`` | ``'bic'``
        Criterion minimised across candidates.
    test_alpha : float
        Significance level for the KPSS unit-root test.
    seasonal_strength_threshold : float
        STL seasonal strength above which one seasonal difference is taken.
    min_observations : int
        Fewer points than this raise ``InsufficientDataError``.
    seasonal_margin : int
        Seasonal terms are searched only with at least ``2 * m +
        seasonal_margin`` points.
    allow_drift : bool
        Include a drift term when exactly one difference is taken.
    require_convergence : bool
        Reject fits whose optimiser did not report convergence.
    """

    max_p: int = 5
    max_d: int = 2
    max_q: int = 5
    max_P: int = 2
    max_D: int = 1
    max_Q: int = 2
    max_order: int = 5
    stepwise: bool = True
    max_models: int = 94
    information_criterion: Literal['aicc', 'aic', 'bic'] = 'aicc'
    test_alpha: float = 0.05
    seasonal_strength_threshold: float = 0.64
    min_observations: int = 8
    seasonal_margin: int = 4
    allow_drift: bool = True
    require_convergence: bool = False

    def __post_init__(self) -> None:
        bounds = {
            'max_p': self.max_p, 'max_d': self.max_d, 'max_q': self.max_q,
            'max_P': self.max_P, 'max_D': self.max_D, 'max_Q': self.max_Q,
            'max_order': self.max_order, 'seasonal_margin': self.seasonal_margin,
        }
        negative = sorted(k for k, v in bounds.items() if v < 0)
        if negative:
            raise ValueError(f'Search bounds must be non-negative: {negative}')
        if self.max_models < 1:
            raise ValueError('max_models must be at least 1')
        if self.min_observations < 1:
            raise ValueError('min_observations must be at least 1')
        if self.information_criterion not in ('aicc', 'aic', 'bic'):
            raise ValueError(
                f'Unknown information criterion {self.information_criterion!r}'
            )
        if not 0.0 < self.test_alpha < 1.0:
            raise ValueError('test_alpha must lie strictly between 0 and 1')


DEFAULT_SEARCH = ArimaSearchConfig()
