# ---------------------------------------------------------------------------
# labor_resilience — Employment volatility, resilience, and forecast extension
# ---------------------------------------------------------------------------
"""Per-industry employment volatility and hiring resilience, auto-ARIMA
forecast extension, and aggregate advisory rules over labor-market panels."""

from .config import (
    DEFAULT_CONFIDENCE,
    DEFAULT_SEARCH,
    FREQUENCIES,
    MEASURE_FIELDS,
    ArimaSearchConfig,
)
from .errors import FitError, InsufficientDataError, ResilienceError, ValidationError
from .forecast import ForecastPoint, ForecastResult, extend, future_periods, naive_extend
from .metrics import (
    DerivedObservation,
    MetricResult,
    compute_employment_change,
    compute_metrics,
    compute_resilience,
    compute_volatility,
    employment_change_frame,
    metrics_frame,
)
from .policy import DEFAULT_RULES, PolicyRule, evaluate, resilience_below, volatility_above
from .simulate import simulate_observations
from .store import OBSERVATION_SCHEMA, Observation, ObservationStore, load

__all__ = [
    "DEFAULT_CONFIDENCE",
    "DEFAULT_SEARCH",
    "FREQUENCIES",
    "MEASURE_FIELDS",
    "ArimaSearchConfig",
    # Errors
    "ResilienceError",
    "ValidationError",
    "InsufficientDataError",
    "FitError",
    # Observation store
    "OBSERVATION_SCHEMA",
    "Observation",
    "ObservationStore",
    "load",
    "simulate_observations",
    # Metrics
    "DerivedObservation",
    "MetricResult",
    "compute_employment_change",
    "compute_volatility",
    "compute_resilience",
    "compute_metrics",
    "employment_change_frame",
    "metrics_frame",
    # Forecast
    "ForecastPoint",
    "ForecastResult",
    "extend",
    "naive_extend",
    "future_periods",
    # Policy
    "PolicyRule",
    "evaluate",
    "volatility_above",
    "resilience_below",
    "DEFAULT_RULES",
]
