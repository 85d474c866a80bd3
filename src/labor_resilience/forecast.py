# ---------------------------------------------------------------------------
# labor_resilience.forecast — Auto-ARIMA forecast extension
# ---------------------------------------------------------------------------
"""Extend one entity's series a fixed number of periods ahead.

The model order is chosen automatically: KPSS tests pick the number of
differences, STL seasonal strength decides on a seasonal difference, and a
stepwise (or grid) search over (p,q)(P,Q) keeps the candidate with the
lowest information criterion.  Forecasts are raw model output; negative
values are not clamped.
"""

from __future__ import annotations

import calendar
import itertools
import logging
import math
import warnings
from dataclasses import dataclass
from datetime import date
from typing import Literal

import numpy as np
import polars as pl
from scipy import stats as sp_stats
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.seasonal import STL
from statsmodels.tsa.stattools import kpss

from .config import DEFAULT_CONFIDENCE, DEFAULT_SEARCH, FREQUENCIES, ArimaSearchConfig
from .errors import FitError, InsufficientDataError, ValidationError

logger = logging.getLogger(__name__)

Method = Literal['arima', 'constant', 'naive']


# =========================================================================
# Result types
# =========================================================================


@dataclass(frozen=True)
class ForecastPoint:
    """Point forecast and prediction interval for one future period."""

    period: date
    point_forecast: float
    lower_bound: float
    upper_bound: float


@dataclass(frozen=True)
class ForecastResult:
    """Forecast for one entity over the requested horizon.

    Parameters
    ----------
    entity : str or None
        Entity label, if supplied by the caller.
    frequency : str
        ``'annual'`` or ``'monthly'``.
    horizon : int
        Number of future periods in *points*.
    confidence : float
        Coverage of the two-sided prediction intervals.
    order : tuple[int, int, int]
        Selected (p, d, q).
    seasonal_order : tuple[int, int, int, int]
        Selected (P, D, Q, m); all zeros for a non-seasonal model.
    trend : str
        statsmodels trend code: ``'c'`` constant, ``'t'`` drift, ``'n'`` none.
    criterion : str
        Information criterion used for selection.
    criterion_value : float or None
        Criterion of the selected fit; ``None`` for non-ARIMA methods.
    n_obs : int
        Number of observations the forecast was built from.
    method : ``'arima'`` | ``'constant'`` | ``'naive'``
        How the forecast was produced.
    points : tuple[ForecastPoint, ...]
        One entry per future period, in order.
    """

    entity: str | None
    frequency: str
    horizon: int
    confidence: float
    order: tuple[int, int, int]
    seasonal_order: tuple[int, int, int, int]
    trend: str
    criterion: str
    criterion_value: float | None
    n_obs: int
    method: Method
    points: tuple[ForecastPoint, ...]

    @property
    def periods(self) -> list[date]:
        return [p.period for p in self.points]

    @property
    def point_forecasts(self) -> list[float]:
        return [p.point_forecast for p in self.points]

    @property
    def lower_bounds(self) -> list[float]:
        return [p.lower_bound for p in self.points]

    @property
    def upper_bounds(self) -> list[float]:
        return [p.upper_bound for p in self.points]

    def to_frame(self) -> pl.DataFrame:
        """Return the forecast as a ``period``/``point_forecast``/bounds frame."""
        return pl.DataFrame(
            {
                'period': self.periods,
                'point_forecast': self.point_forecasts,
                'lower_bound': self.lower_bounds,
                'upper_bound': self.upper_bounds,
            },
            schema={
                'period': pl.Date,
                'point_forecast': pl.Float64,
                'lower_bound': pl.Float64,
                'upper_bound': pl.Float64,
            },
        )


# =========================================================================
# Public API
# =========================================================================


def extend(
    series: pl.DataFrame,
    frequency: str,
    horizon: int,
    *,
    config: ArimaSearchConfig | None = None,
    confidence: float = DEFAULT_CONFIDENCE,
    entity: str | None = None,
) -> ForecastResult:
    """Fit an automatically-ordered (seasonal) ARIMA and forecast *horizon* periods.

    Parameters
    ----------
    series : pl.DataFrame
        Columns ``period`` and ``value``, e.g. from
        :meth:`ObservationStore.values_for`.  Null values are dropped.
    frequency : ``'annual'`` | ``'monthly'``
        Period spacing; also fixes the seasonal period (1 or 12).
    horizon : int
        Number of future periods to project (>= 1).
    config : ArimaSearchConfig, optional
        Search bounds.  Defaults to ``DEFAULT_SEARCH``.
    confidence : float
        Prediction-interval coverage (default 0.95).
    entity : str, optional
        Label carried into the result.

    Returns
    -------
    ForecastResult

    Raises
    ------
    ValidationError
        Bad frequency, horizon, confidence, or series shape.
    InsufficientDataError
        Fewer than ``config.min_observations`` values.
    FitError
        No candidate model produced an acceptable fit.
    """
    if config is None:
        config = DEFAULT_SEARCH
    m = _seasonal_period(frequency)
    _check_horizon(horizon)
    _check_confidence(confidence)
    periods, y = _prepare_series(series)

    n = len(y)
    if n < config.min_observations:
        raise InsufficientDataError(
            f'{entity or "series"}: {n} observations, need at least {config.min_observations}'
        )

    future = future_periods(periods[-1], frequency, horizon)

    if np.ptp(y) == 0:
        logger.info('%s: constant series, returning flat forecast', entity or 'series')
        level = float(y[-1])
        return ForecastResult(
            entity=entity,
            frequency=frequency,
            horizon=horizon,
            confidence=confidence,
            order=(0, 0, 0),
            seasonal_order=(0, 0, 0, 0),
            trend='c',
            criterion=config.information_criterion,
            criterion_value=None,
            n_obs=n,
            method='constant',
            points=tuple(ForecastPoint(p, level, level, level) for p in future),
        )

    seasonal = m > 1 and n >= 2 * m + config.seasonal_margin
    if m > 1 and not seasonal:
        logger.warning(
            '%s: %d observations is too short for seasonal terms (m=%d), '
            'searching non-seasonal models only',
            entity or 'series', n, m,
        )

    D = seasonal_differences(y, m, config) if seasonal else 0
    y_sd = y[m:] - y[:-m] if D else y
    d = differences(y_sd, config)

    search = _OrderSearch(y, d, D, m if seasonal else 0, config)
    best_key, best_fit, best_ic = search.run()
    if best_fit is None:
        raise FitError(
            f'{entity or "series"}: no acceptable ARIMA fit after '
            f'{search.n_fitted} candidate(s) with d={d}, D={D}'
        )

    p, q, P, Q = best_key
    order = (p, d, q)
    seasonal_order = (P, D, Q, m) if seasonal else (0, 0, 0, 0)
    trend = search.trend
    logger.info(
        '%s: selected ARIMA%s%s trend=%r %s=%.3f (%d candidates)',
        entity or 'series', order, seasonal_order, trend,
        config.information_criterion, best_ic, search.n_fitted,
    )

    fc = best_fit.get_forecast(steps=horizon)
    mean = np.asarray(fc.predicted_mean, dtype=float)
    ci = np.asarray(fc.conf_int(alpha=1.0 - confidence), dtype=float)

    points = tuple(
        ForecastPoint(
            period=future[h],
            point_forecast=float(mean[h]),
            lower_bound=float(ci[h, 0]),
            upper_bound=float(ci[h, 1]),
        )
        for h in range(horizon)
    )
    return ForecastResult(
        entity=entity,
        frequency=frequency,
        horizon=horizon,
        confidence=confidence,
        order=order,
        seasonal_order=seasonal_order,
        trend=trend,
        criterion=config.information_criterion,
        criterion_value=best_ic,
        n_obs=n,
        method='arima',
        points=points,
    )


def naive_extend(
    series: pl.DataFrame,
    frequency: str,
    horizon: int,
    *,
    confidence: float = DEFAULT_CONFIDENCE,
    entity: str | None = None,
) -> ForecastResult:
    """Last-value-carried-forward forecast with random-walk intervals.

    Intended as the caller's fallback after :class:`FitError`.  The
    interval half-width at step *h* is ``z * sigma * sqrt(h)`` with
    *sigma* the sample std of first differences (zero with fewer than
    three observations).
    """
    _seasonal_period(frequency)
    _check_horizon(horizon)
    _check_confidence(confidence)
    periods, y = _prepare_series(series)
    if len(y) == 0:
        raise InsufficientDataError(f'{entity or "series"}: no observations to carry forward')

    last = float(y[-1])
    steps = np.diff(y)
    sigma = float(np.std(steps, ddof=1)) if len(steps) >= 2 else 0.0
    z = float(sp_stats.norm.ppf(0.5 + confidence / 2.0))

    points = []
    for h, period in enumerate(future_periods(periods[-1], frequency, horizon), start=1):
        half = z * sigma * math.sqrt(h)
        points.append(ForecastPoint(period, last, last - half, last + half))

    return ForecastResult(
        entity=entity,
        frequency=frequency,
        horizon=horizon,
        confidence=confidence,
        order=(0, 1, 0),
        seasonal_order=(0, 0, 0, 0),
        trend='n',
        criterion='none',
        criterion_value=None,
        n_obs=len(y),
        method='naive',
        points=tuple(points),
    )


def future_periods(last: date, frequency: str, horizon: int) -> list[date]:
    """Return the *horizon* periods following *last* at *frequency*.

    Monthly steps keep the day of month, clipped to the month's length.

    Raises
    ------
    ValidationError
        If *frequency* is not a known frequency.
    """
    step = 12 // _seasonal_period(frequency)
    return [_add_months(last, step * h) for h in range(1, horizon + 1)]


# =========================================================================
# Differencing order
# =========================================================================


def differences(y: np.ndarray, config: ArimaSearchConfig = DEFAULT_SEARCH) -> int:
    """Number of first differences needed for KPSS level stationarity."""
    d = 0
    x = np.asarray(y, dtype=float)
    while d < config.max_d and len(x) > 3 and np.ptp(x) > 0:
        with warnings.catch_warnings():
            # p-values outside the lookup table only trigger InterpolationWarning
            warnings.simplefilter('ignore')
            _, pvalue, _, _ = kpss(x, regression='c', nlags='auto')
        if pvalue >= config.test_alpha:
            break
        x = np.diff(x)
        d += 1
    return d


def seasonal_differences(y: np.ndarray, m: int, config: ArimaSearchConfig = DEFAULT_SEARCH) -> int:
    """1 if STL seasonal strength exceeds the configured threshold, else 0.

    Strength is ``max(0, 1 - var(remainder) / var(seasonal + remainder))``.
    """
    if config.max_D < 1 or m < 2 or len(y) < 2 * m + 1:
        return 0
    res = STL(np.asarray(y, dtype=float), period=m).fit()
    detrended = res.seasonal + res.resid
    var_sr = float(np.var(detrended))
    if var_sr == 0.0:
        return 0
    strength = max(0.0, 1.0 - float(np.var(res.resid)) / var_sr)
    logger.debug('seasonal strength %.3f (threshold %.2f)', strength, config.seasonal_strength_threshold)
    return 1 if strength > config.seasonal_strength_threshold else 0


# =========================================================================
# Order search
# =========================================================================


def _fit_arima(y: np.ndarray, order, seasonal_order, trend: str):
    """Fit one candidate; returns statsmodels ARIMAResults."""
    model = ARIMA(y, order=order, seasonal_order=seasonal_order, trend=trend)
    with warnings.catch_warnings():
        # starting-parameter and convergence chatter
        warnings.simplefilter('ignore')
        return model.fit()


class _OrderSearch:
    """Scores (p, q, P, Q) candidates for fixed d, D, m."""

    def __init__(self, y: np.ndarray, d: int, D: int, m: int, config: ArimaSearchConfig) -> None:
        self.y = y
        self.d = d
        self.D = D
        self.m = m
        self.config = config
        self.trend = _trend_for(d + D, config.allow_drift)
        self._scores: dict[tuple[int, int, int, int], float] = {}
        self._fits: dict[tuple[int, int, int, int], object] = {}

    @property
    def n_fitted(self) -> int:
        return len(self._scores)

    def run(self):
        if self.config.stepwise:
            self._stepwise()
        else:
            self._grid()
        finite = {k: v for k, v in self._scores.items() if math.isfinite(v)}
        if not finite:
            return None, None, None
        best = min(finite, key=finite.get)
        return best, self._fits[best], finite[best]

    def _valid(self, key: tuple[int, int, int, int]) -> bool:
        p, q, P, Q = key
        c = self.config
        if min(key) < 0 or p > c.max_p or q > c.max_q:
            return False
        if self.m == 0 and (P or Q):
            return False
        if P > c.max_P or Q > c.max_Q:
            return False
        # max_order bounds the grid only
        return c.stepwise or p + q + P + Q <= c.max_order

    def _clip(self, key: tuple[int, int, int, int]) -> tuple[int, int, int, int]:
        c = self.config
        p, q, P, Q = key
        if self.m == 0:
            P = Q = 0
        return (min(p, c.max_p), min(q, c.max_q), min(P, c.max_P), min(Q, c.max_Q))

    def _score(self, key: tuple[int, int, int, int]) -> float:
        if key in self._scores:
            return self._scores[key]
        if len(self._scores) >= self.config.max_models:
            return math.inf

        p, q, P, Q = key
        order = (p, self.d, q)
        seasonal_order = (P, self.D, Q, self.m) if self.m else (0, 0, 0, 0)
        criterion = self.config.information_criterion
        ic = math.inf
        try:
            res = _fit_arima(self.y, order, seasonal_order, self.trend)
            if res.df_model + 1 >= res.nobs_effective:
                logger.debug('ARIMA%s%s: too many parameters for %d obs',
                             order, seasonal_order, res.nobs_effective)
            elif self.config.require_convergence and not _converged(res):
                logger.debug('ARIMA%s%s: optimiser did not converge', order, seasonal_order)
            else:
                value = float(getattr(res, criterion))
                if math.isfinite(value):
                    ic = value
                    self._fits[key] = res
        except (ValueError, ZeroDivisionError, np.linalg.LinAlgError) as e:
            logger.debug('ARIMA%s%s failed: %s', order, seasonal_order, e)

        logger.debug('ARIMA%s%s %s=%s', order, seasonal_order, criterion, ic)
        self._scores[key] = ic
        return ic

    def _stepwise(self) -> None:
        seasonal = self.m > 0
        starts = [
            (2, 2, 1, 1) if seasonal else (2, 2, 0, 0),
            (0, 0, 0, 0),
            (1, 0, 1, 0) if seasonal else (1, 0, 0, 0),
            (0, 1, 0, 1) if seasonal else (0, 1, 0, 0),
        ]
        best, best_ic = None, math.inf
        for key in starts:
            key = self._clip(key)
            if not self._valid(key):
                continue
            ic = self._score(key)
            if best is None or ic < best_ic:
                best, best_ic = key, ic
        if best is None:
            return

        improved = True
        while improved and len(self._scores) < self.config.max_models:
            improved = False
            for key in self._neighbours(best):
                if key in self._scores or not self._valid(key):
                    continue
                ic = self._score(key)
                if ic < best_ic:
                    best, best_ic = key, ic
                    improved = True
                    break

    def _neighbours(self, key: tuple[int, int, int, int]):
        p, q, P, Q = key
        if self.m:
            for dP, dQ in ((-1, 0), (1, 0), (0, -1), (0, 1), (-1, -1), (1, 1)):
                yield (p, q, P + dP, Q + dQ)
        for dp, dq in ((-1, 0), (1, 0), (0, -1), (0, 1), (-1, -1), (1, 1)):
            yield (p + dp, q + dq, P, Q)

    def _grid(self) -> None:
        c = self.config
        seasonal_range = range(c.max_P + 1) if self.m else range(1)
        seasonal_ma = range(c.max_Q + 1) if self.m else range(1)
        for key in itertools.product(range(c.max_p + 1), range(c.max_q + 1),
                                     seasonal_range, seasonal_ma):
            if len(self._scores) >= c.max_models:
                break
            if self._valid(key):
                self._score(key)


# =========================================================================
# Helpers
# =========================================================================


def _trend_for(n_diff: int, allow_drift: bool) -> str:
    if n_diff == 0:
        return 'c'
    if n_diff == 1 and allow_drift:
        return 't'
    return 'n'


def _converged(res) -> bool:
    retvals = getattr(res, 'mle_retvals', None) or {}
    return bool(retvals.get('converged', True))


def _seasonal_period(frequency: str) -> int:
    try:
        return FREQUENCIES[frequency]
    except (KeyError, TypeError):
        raise ValidationError(
            f'Unknown frequency {frequency!r}; expected one of {sorted(FREQUENCIES)}'
        ) from None


def _check_horizon(horizon: int) -> None:
    if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon < 1:
        raise ValidationError(f'horizon must be a positive integer, got {horizon!r}')


def _check_confidence(confidence: float) -> None:
    if not 0.0 < confidence < 1.0:
        raise ValidationError(f'confidence must lie strictly between 0 and 1, got {confidence!r}')


def _prepare_series(series: pl.DataFrame) -> tuple[list[date], np.ndarray]:
    """Validate a ``period``/``value`` frame; return sorted periods and values."""
    if not isinstance(series, pl.DataFrame):
        raise ValidationError(f'series must be a polars DataFrame, got {type(series).__name__}')
    missing = {'period', 'value'} - set(series.columns)
    if missing:
        raise ValidationError(f'Missing required columns: {sorted(missing)}')

    df = series.select('period', pl.col('value').cast(pl.Float64))
    n_null = df['value'].null_count()
    if n_null:
        logger.warning('Dropping %d null value(s) before fitting', n_null)
        df = df.drop_nulls('value')
    if df['period'].null_count():
        raise ValidationError('period column contains nulls')
    if df['period'].n_unique() != len(df):
        raise ValidationError('period column contains duplicates')

    df = df.sort('period')
    y = df['value'].to_numpy().astype(float)
    if not np.all(np.isfinite(y)):
        raise ValidationError('value column contains non-finite values')
    return df['period'].to_list(), y


def _add_months(d: date, months: int) -> date:
    total = d.year * 12 + (d.month - 1) + months
    year, month0 = divmod(total, 12)
    day = min(d.day, calendar.monthrange(year, month0 + 1)[1])
    return date(year, month0 + 1, day)
