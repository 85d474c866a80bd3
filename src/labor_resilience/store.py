"""In-memory observation store: one row per (entity, period).

Records are validated once at load time and held in a polars DataFrame
conforming to OBSERVATION_SCHEMA.  The store is read-only afterwards;
every accessor returns fresh objects.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import polars as pl

from .config import MEASURE_FIELDS
from .errors import ValidationError

logger = logging.getLogger(__name__)


# Backing-frame schema: one labor-market measurement row per entity and period.
OBSERVATION_SCHEMA: dict[str, pl.DataType] = {
    'entity': pl.Utf8,
    'period': pl.Date,
    'employment_level': pl.Float64,
    'job_openings': pl.Float64,
    'hires': pl.Float64,
    'separations': pl.Float64,
}

_ANNUAL_RE = re.compile(r'^(\d{4})$')
_MONTHLY_RE = re.compile(r'^(\d{4})-(\d{1,2})(?:-(\d{1,2}))?$')


@dataclass(frozen=True)
class Observation:
    """One labor-market measurement for an entity in a period.

    Parameters
    ----------
    entity : str
        Entity label, typically an industry (e.g. ``'Construction'``).
    period : date
        Reference period.  Annual observations use January 1st.
    employment_level, job_openings, hires, separations : float or None
        Non-negative counts; ``None`` marks a missing value.
    """

    entity: str
    period: date
    employment_level: float | None = None
    job_openings: float | None = None
    hires: float | None = None
    separations: float | None = None


class ObservationStore:
    """Validated, read-only table of observations.

    Build one with :func:`load` or :meth:`from_frame`; the constructor
    assumes its inputs are already validated.
    """

    def __init__(self, frame: pl.DataFrame) -> None:
        self._frame = frame
        self._entities = frozenset(frame['entity'].unique().to_list())

    @classmethod
    def from_frame(cls, df: pl.DataFrame) -> ObservationStore:
        """Validate and load a polars DataFrame with the observation columns.

        Measure columns absent from *df* are treated as missing.
        """
        missing = {'entity', 'period'} - set(df.columns)
        if missing:
            raise ValidationError(f'Missing required columns: {sorted(missing)}')
        keep = [c for c in OBSERVATION_SCHEMA if c in df.columns]
        return load(df.select(keep).to_dicts())

    @property
    def frame(self) -> pl.DataFrame:
        """Copy of the backing frame, sorted by entity then period."""
        return self._frame.clone()

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f'ObservationStore(entities={len(self._entities)}, rows={len(self)})'

    def entities_of(self) -> set[str]:
        """Return the set of entity labels present in the store."""
        return set(self._entities)

    def series_for(self, entity: str) -> list[Observation]:
        """Return *entity*'s observations sorted by period ascending.

        Raises
        ------
        KeyError
            If *entity* is not in the store.
        """
        self._require(entity)
        rows = (
            self._frame.filter(pl.col('entity') == entity)
            .sort('period')
            .to_dicts()
        )
        return [Observation(**row) for row in rows]

    def values_for(self, entity: str, field: str) -> pl.DataFrame:
        """Return one measure of one entity as a ``period``/``value`` frame.

        Missing values are dropped, so the result may have gaps.  This is
        the input shape expected by :func:`labor_resilience.forecast.extend`.

        Parameters
        ----------
        entity : str
            Entity label.
        field : str
            One of ``MEASURE_FIELDS``.

        Returns
        -------
        pl.DataFrame
            Columns ``period`` (Date) and ``value`` (Float64), period ascending.
        """
        if field not in MEASURE_FIELDS:
            raise ValidationError(
                f'Unknown field {field!r}; expected one of {list(MEASURE_FIELDS)}'
            )
        self._require(entity)
        return (
            self._frame.filter(pl.col('entity') == entity)
            .select('period', pl.col(field).alias('value'))
            .drop_nulls('value')
            .sort('period')
        )

    def _require(self, entity: str) -> None:
        if entity not in self._entities:
            raise KeyError(entity)


# =========================================================================
# Loading and validation
# =========================================================================


def load(records: Iterable[Observation | Mapping[str, Any]]) -> ObservationStore:
    """Validate observation records and build an :class:`ObservationStore`.

    Parameters
    ----------
    records : iterable of Observation or mapping
        Mappings use the Observation field names.  Periods may be dates,
        integer years, or ``'YYYY'`` / ``'YYYY-MM'`` / ``'YYYY-MM-DD'``
        strings.

    Returns
    -------
    ObservationStore

    Raises
    ------
    ValidationError
        On a missing entity label, a negative or non-finite count, a period
        that cannot be ordered, mixed annual/monthly periods within one
        entity, or a duplicate (entity, period) pair.
    """
    rows: list[dict[str, Any]] = []
    granularity: dict[str, str] = {}
    seen: set[tuple[str, date]] = set()

    for i, record in enumerate(records):
        raw = _as_mapping(record)

        entity = raw.get('entity')
        if not isinstance(entity, str) or not entity.strip():
            raise ValidationError(f'Record {i}: entity must be a non-empty string, got {entity!r}')

        try:
            period, grain = _coerce_period(raw.get('period'))
        except ValidationError as e:
            raise ValidationError(f'Record {i} ({entity}): {e}') from None

        expected = granularity.setdefault(entity, grain)
        if expected != grain:
            raise ValidationError(
                f'Record {i} ({entity}): mixed annual/monthly granularity, {grain} period '
                f'{period} after {expected} periods already loaded for this entity'
            )

        key = (entity, period)
        if key in seen:
            raise ValidationError(f'Record {i}: duplicate period {period} for {entity!r}')
        seen.add(key)

        row: dict[str, Any] = {'entity': entity, 'period': period}
        for name in MEASURE_FIELDS:
            row[name] = _coerce_measure(name, raw.get(name), i, entity)
        rows.append(row)

    frame = pl.DataFrame(rows, schema=OBSERVATION_SCHEMA).sort('entity', 'period')
    logger.info('Loaded %d observations for %d entities', len(frame), len(granularity))
    return ObservationStore(frame)


def _as_mapping(record: Observation | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(record, Observation):
        return record.__dict__
    if isinstance(record, Mapping):
        return record
    raise ValidationError(f'Unsupported record type {type(record).__name__}')


def _coerce_period(value: Any) -> tuple[date, str]:
    """Map a raw period to ``(date, granularity)``.

    Integer years and ``'YYYY'`` strings are annual; dates and
    ``'YYYY-MM[-DD]'`` strings are monthly.
    """
    # bool is an int subclass
    if isinstance(value, bool):
        raise ValidationError(f'period {value!r} is not orderable')
    if isinstance(value, datetime):
        return value.date(), 'monthly'
    if isinstance(value, date):
        return value, 'monthly'
    if isinstance(value, int):
        return _make_date(value, 1, 1, value), 'annual'
    if isinstance(value, str):
        text = value.strip()
        m = _ANNUAL_RE.match(text)
        if m:
            return _make_date(int(m.group(1)), 1, 1, value), 'annual'
        m = _MONTHLY_RE.match(text)
        if m:
            day = int(m.group(3)) if m.group(3) else 1
            return _make_date(int(m.group(1)), int(m.group(2)), day, value), 'monthly'
    raise ValidationError(f'period {value!r} is not orderable')


def _make_date(year: int, month: int, day: int, raw: Any) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        raise ValidationError(f'period {raw!r} is not a valid calendar date') from None


def _coerce_measure(name: str, value: Any, index: int, entity: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f'Record {index} ({entity}): {name} must be numeric, got {value!r}')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f'Record {index} ({entity}): {name} must be numeric, got {value!r}'
        ) from None
    if not math.isfinite(number):
        raise ValidationError(f'Record {index} ({entity}): {name} is non-finite ({value!r})')
    if number < 0:
        raise ValidationError(f'Record {index} ({entity}): {name} is negative ({value!r})')
    return number
