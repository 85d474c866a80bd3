"""Tests for labor_resilience.store — loading, validation, and accessors."""

from datetime import date

import polars as pl
import pytest

from labor_resilience.errors import ValidationError
from labor_resilience.store import OBSERVATION_SCHEMA, Observation, ObservationStore, load


def _make_rows(entity: str = 'Construction', n: int = 4, **overrides) -> list[dict]:
    """Generate n valid annual rows for one entity."""
    rows = []
    for i in range(n):
        row = {
            'entity': entity,
            'period': 2015 + i,
            'employment_level': 100000.0 + 1000 * i,
            'job_openings': 5000.0,
            'hires': 4000.0 + 100 * i,
            'separations': 3500.0,
        }
        row.update(overrides)
        rows.append(row)
    return rows


class TestLoad:
    """Tests for load."""

    def test_load_good(self):
        """A well-formed record list loads into a store with the schema."""
        store = load(_make_rows() + _make_rows('Healthcare'))
        assert len(store) == 8
        assert store.frame.columns == list(OBSERVATION_SCHEMA)
        assert store.frame['period'].dtype == pl.Date
        assert store.entities_of() == {'Construction', 'Healthcare'}

    def test_load_observation_objects(self):
        obs = [
            Observation('Retail', date(2020, 2, 1), employment_level=10.0),
            Observation('Retail', date(2020, 1, 1), employment_level=12.0),
        ]
        store = load(obs)
        assert [o.period for o in store.series_for('Retail')] == [
            date(2020, 1, 1), date(2020, 2, 1),
        ]

    def test_empty(self):
        store = load([])
        assert len(store) == 0
        assert store.entities_of() == set()

    def test_negative_count_raises(self):
        rows = _make_rows()
        rows[2]['hires'] = -1.0
        with pytest.raises(ValidationError, match='negative'):
            load(rows)

    def test_non_finite_count_raises(self):
        rows = _make_rows()
        rows[1]['separations'] = float('nan')
        with pytest.raises(ValidationError, match='non-finite'):
            load(rows)

    def test_non_numeric_count_raises(self):
        rows = _make_rows()
        rows[0]['job_openings'] = 'many'
        with pytest.raises(ValidationError, match='numeric'):
            load(rows)

    def test_missing_counts_allowed(self):
        rows = _make_rows()
        rows[1]['hires'] = None
        del rows[2]['job_openings']
        store = load(rows)
        series = store.series_for('Construction')
        assert series[1].hires is None
        assert series[2].job_openings is None

    @pytest.mark.parametrize('period', [None, 2020.5, 'spring', '2020-13', True])
    def test_unorderable_period_raises(self, period):
        rows = _make_rows(n=2)
        rows[1]['period'] = period
        with pytest.raises(ValidationError):
            load(rows)

    def test_mixed_granularity_raises(self):
        """Annual and monthly periods may not be mixed within one entity."""
        rows = _make_rows(n=2)
        rows[1]['period'] = date(2015, 6, 1)
        with pytest.raises(ValidationError, match='mixed annual/monthly granularity'):
            load(rows)

    def test_monthly_date_then_year_raises(self):
        rows = [
            {'entity': 'Retail', 'period': date(2020, 1, 1)},
            {'entity': 'Retail', 'period': 2021},
        ]
        with pytest.raises(ValidationError, match='mixed annual/monthly granularity'):
            load(rows)

    def test_mixed_granularity_across_entities_ok(self):
        rows = _make_rows('A', n=2) + _make_rows('B', n=2, period=None)
        rows[2]['period'] = '2015-01'
        rows[3]['period'] = '2015-02'
        store = load(rows)
        assert store.entities_of() == {'A', 'B'}

    def test_duplicate_period_raises(self):
        rows = _make_rows(n=3)
        rows.append(dict(rows[0]))
        with pytest.raises(ValidationError, match='duplicate'):
            load(rows)

    def test_duplicate_via_different_spellings_raises(self):
        """2015 and '2015' coerce to the same period."""
        rows = _make_rows(n=1)
        rows.append({**rows[0], 'period': '2015'})
        with pytest.raises(ValidationError, match='duplicate'):
            load(rows)

    def test_missing_entity_raises(self):
        rows = _make_rows(n=1)
        rows[0]['entity'] = ''
        with pytest.raises(ValidationError, match='entity'):
            load(rows)

    def test_period_coercion(self):
        rows = [
            {'entity': 'Y', 'period': 2019},
            {'entity': 'Y', 'period': '2018'},
            {'entity': 'M', 'period': '2019-03'},
            {'entity': 'M', 'period': '2019-02-12'},
        ]
        store = load(rows)
        assert [o.period for o in store.series_for('Y')] == [date(2018, 1, 1), date(2019, 1, 1)]
        assert [o.period for o in store.series_for('M')] == [date(2019, 2, 12), date(2019, 3, 1)]


class TestAccessors:
    """Tests for ObservationStore accessors."""

    def test_series_for_sorted(self):
        rows = list(reversed(_make_rows(n=5)))
        store = load(rows)
        periods = [o.period for o in store.series_for('Construction')]
        assert periods == sorted(periods)
        assert all(isinstance(o, Observation) for o in store.series_for('Construction'))

    def test_series_for_unknown_entity(self):
        store = load(_make_rows())
        with pytest.raises(KeyError):
            store.series_for('Mining')

    def test_values_for(self):
        rows = _make_rows(n=4)
        rows[1]['hires'] = None
        store = load(rows)
        df = store.values_for('Construction', 'hires')
        assert df.columns == ['period', 'value']
        assert df['value'].to_list() == [4000.0, 4200.0, 4300.0]

    def test_values_for_unknown_field(self):
        store = load(_make_rows())
        with pytest.raises(ValidationError, match='Unknown field'):
            store.values_for('Construction', 'wages')

    def test_frame_is_a_copy(self):
        store = load(_make_rows())
        df = store.frame
        df[0, 'hires'] = 0.0
        assert store.frame['hires'][0] == 4000.0


class TestFromFrame:
    """Tests for ObservationStore.from_frame."""

    def test_from_frame(self):
        df = pl.DataFrame(
            {
                'entity': ['A', 'A', 'B'],
                'period': [date(2020, 1, 1), date(2020, 2, 1), date(2020, 1, 1)],
                'hires': [1.0, 2.0, 3.0],
            }
        )
        store = ObservationStore.from_frame(df)
        assert len(store) == 3
        assert store.series_for('A')[1].hires == 2.0
        assert store.series_for('A')[1].employment_level is None

    def test_from_frame_missing_column(self):
        df = pl.DataFrame({'entity': ['A'], 'hires': [1.0]})
        with pytest.raises(ValidationError, match='Missing required columns'):
            ObservationStore.from_frame(df)
