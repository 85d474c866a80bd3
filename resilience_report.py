#!/usr/bin/env python
# ---------------------------------------------------------------------------
# resilience_report.py — Thin runner for the labor_resilience package
# ---------------------------------------------------------------------------
"""Volatility/resilience scoring, advisories, and hires forecasts on a
seeded simulated industry panel.

Usage:
    python resilience_report.py
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from labor_resilience.errors import FitError, InsufficientDataError
from labor_resilience.forecast import ForecastResult, extend, naive_extend
from labor_resilience.metrics import MetricResult, compute_metrics
from labor_resilience.policy import DEFAULT_RULES, evaluate
from labor_resilience.simulate import simulate_observations
from labor_resilience.store import load

SEED = 42
FREQUENCY = "annual"
HORIZON = 5
FORECAST_FIELD = "hires"


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # 1. Data ------------------------------------------------------------------
    store = load(simulate_observations(SEED, frequency=FREQUENCY))

    # 2. Metrics ---------------------------------------------------------------
    metrics = compute_metrics(store)
    _print_metrics_table(metrics)

    # 3. Advisories ------------------------------------------------------------
    _print_advisories(evaluate(metrics, DEFAULT_RULES))

    # 4. Forecasts -------------------------------------------------------------
    for entity in sorted(store.entities_of()):
        series = store.values_for(entity, FORECAST_FIELD)
        try:
            result = extend(series, FREQUENCY, HORIZON, entity=entity)
        except InsufficientDataError as e:
            print(f"\n{entity}: skipped ({e})")
            continue
        except FitError as e:
            print(f"\n{entity}: {e}; falling back to last value carried forward")
            result = naive_extend(series, FREQUENCY, HORIZON, entity=entity)
        _print_forecast_table(result)

    print("\n" + "=" * 72)
    print("labor_resilience report complete.")
    print("=" * 72)


# =========================================================================
# Print helpers
# =========================================================================


def _fmt(value: float | None, spec: str) -> str:
    return "n/a" if value is None else format(value, spec)


def _print_metrics_table(metrics: dict[str, MetricResult]) -> None:
    print("=" * 72)
    print("EMPLOYMENT VOLATILITY & HIRING RESILIENCE")
    print("=" * 72)
    print(f"{'Entity':<16} {'Volatility':>14} {'Resilience':>14} {'n chg':>7} {'n hires':>8}")
    print("-" * 72)
    for entity, m in metrics.items():
        print(f"{entity:<16} {_fmt(m.volatility, '14,.1f'):>14} "
              f"{_fmt(m.resilience, '14,.1f'):>14} {m.n_changes:>7} {m.n_hires:>8}")


def _print_advisories(advisories: list[str]) -> None:
    print("\n" + "=" * 72)
    print("POLICY ADVISORIES")
    print("=" * 72)
    if not advisories:
        print("  (no rule triggered)")
    for text in advisories:
        print(f"  - {text}")


def _print_forecast_table(result: ForecastResult) -> None:
    pct = int(round(result.confidence * 100))
    print("\n" + "=" * 72)
    print(f"FORECAST: {result.entity} {FORECAST_FIELD} ({result.method}, "
          f"ARIMA{result.order}{result.seasonal_order}, n={result.n_obs})")
    print("=" * 72)
    print(f"{'Period':>12}  {'Forecast':>12} {f'{pct}% interval':>28}")
    print("-" * 72)
    for pt in result.points:
        print(f"{str(pt.period):>12}  {pt.point_forecast:12,.0f} "
              f"[{pt.lower_bound:12,.0f}, {pt.upper_bound:12,.0f}]")


if __name__ == "__main__":
    main()
