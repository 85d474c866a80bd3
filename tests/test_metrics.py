"""Tests for labor_resilience.metrics — employment change, volatility, resilience."""

import random
from datetime import date

import numpy as np
import pytest

from labor_resilience.metrics import (
    compute_employment_change,
    compute_metrics,
    compute_resilience,
    compute_volatility,
    employment_change_frame,
    metrics_frame,
)
from labor_resilience.store import Observation, load


def _series(entity: str, levels: list, hires: list | None = None) -> list[Observation]:
    hires = hires if hires is not None else [None] * len(levels)
    return [
        Observation(entity, date(2020 + i, 1, 1), employment_level=lvl, hires=h)
        for i, (lvl, h) in enumerate(zip(levels, hires))
    ]


class TestEmploymentChange:
    """Tests for compute_employment_change."""

    def test_construction_scenario(self):
        series = _series('Construction', [100000.0, 120000.0, 90000.0, 150000.0])
        derived = compute_employment_change(series)
        assert [d.employment_change for d in derived] == [None, 20000.0, -30000.0, 60000.0]

    def test_length_and_exact_differences(self):
        levels = [1.1, 2.7, 2.2, 9.9, 0.3]
        derived = compute_employment_change(_series('X', levels))
        assert len(derived) == len(levels)
        assert derived[0].employment_change is None
        for i in range(1, len(levels)):
            assert derived[i].employment_change == levels[i] - levels[i - 1]

    def test_carries_observation(self):
        series = _series('X', [1.0, 2.0])
        derived = compute_employment_change(series)
        assert derived[1].observation is series[1]
        assert derived[1].entity == 'X'
        assert derived[1].period == date(2021, 1, 1)

    def test_missing_level_breaks_chain(self):
        derived = compute_employment_change(_series('X', [1.0, None, 3.0, 5.0]))
        assert [d.employment_change for d in derived] == [None, None, None, 2.0]

    def test_empty(self):
        assert compute_employment_change([]) == []


class TestVolatility:
    """Tests for compute_volatility."""

    def test_construction_scenario(self):
        """Sample std of [20000, -30000, 60000]."""
        assert compute_volatility([None, 20000.0, -30000.0, 60000.0]) == pytest.approx(
            45092.5, abs=0.1
        )

    def test_matches_numpy_sample_std(self):
        values = [3.0, 7.0, 7.0, 19.0]
        assert compute_volatility(values) == pytest.approx(np.std(values, ddof=1))

    @pytest.mark.parametrize('changes', [[], [None], [None, 5.0], [0.0], [float('nan'), 1.0]])
    def test_undefined_below_two_values(self, changes):
        """Fewer than two defined values is undefined, never 0."""
        assert compute_volatility(changes) is None

    def test_identical_values_give_zero(self):
        assert compute_volatility([5.0, 5.0]) == 0.0

    def test_idempotent(self):
        changes = [None, 1.5, -2.25, 8.0, 0.1]
        assert compute_volatility(changes) == compute_volatility(changes)


class TestResilience:
    """Tests for compute_resilience."""

    def test_healthcare_scenario(self):
        assert compute_resilience([4000.0, 6000.0, 5000.0]) == 5000.0

    def test_skips_missing(self):
        assert compute_resilience([None, 2.0, float('nan'), 4.0]) == 3.0

    def test_empty_is_undefined(self):
        assert compute_resilience([]) is None
        assert compute_resilience([None, None]) is None

    def test_order_independent(self):
        values = [0.1, 1e16, 3.3, -1e16, 7.0, 2.2]
        expected = compute_resilience(values)
        rng = random.Random(7)
        for _ in range(10):
            shuffled = values[:]
            rng.shuffle(shuffled)
            assert compute_resilience(shuffled) == expected

    def test_idempotent(self):
        hires = [1.0, 2.0, 3.5]
        assert compute_resilience(hires) == compute_resilience(hires)


class TestComputeMetrics:
    """Tests for compute_metrics and the frame views."""

    def _store(self):
        obs = _series('Construction', [100000.0, 120000.0, 90000.0, 150000.0],
                      [1.0, 2.0, 3.0, 4.0])
        obs += _series('Healthcare', [50000.0], [4000.0])
        obs += [Observation('Healthcare', date(2021, 1, 1), hires=6000.0),
                Observation('Healthcare', date(2022, 1, 1), hires=5000.0)]
        return load(obs)

    def test_per_entity(self):
        metrics = compute_metrics(self._store())
        assert set(metrics) == {'Construction', 'Healthcare'}

        c = metrics['Construction']
        assert c.volatility == pytest.approx(45092.5, abs=0.1)
        assert c.resilience == 2.5
        assert c.n_changes == 3

        h = metrics['Healthcare']
        assert h.volatility is None
        assert h.resilience == 5000.0
        assert h.n_hires == 3

    def test_metrics_frame_keeps_nulls(self):
        df = metrics_frame(compute_metrics(self._store()))
        assert df['entity'].to_list() == ['Construction', 'Healthcare']
        assert df['volatility'][1] is None

    def test_change_frame_matches_sequence_version(self):
        store = self._store()
        df = employment_change_frame(store)
        for entity in store.entities_of():
            expected = [d.employment_change
                        for d in compute_employment_change(store.series_for(entity))]
            got = df.filter(df['entity'] == entity)['employment_change'].to_list()
            assert got == expected
