"""Aggregate threshold rules over computed metrics.

A rule's predicate looks at the whole entity -> MetricResult mapping
("does any industry exceed T?") and, when true, contributes its advisory
text once.  Predicates receive a read-only view of the metrics.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from .config import RESILIENCE_THRESHOLD, VOLATILITY_THRESHOLD
from .metrics import MetricResult

Predicate = Callable[[Mapping[str, MetricResult]], bool]


@dataclass(frozen=True)
class PolicyRule:
    """An aggregate condition paired with the advisory it triggers.

    Parameters
    ----------
    name : str
        Short identifier for logs and tables.
    predicate : callable
        ``predicate(metrics) -> bool`` over the full entity mapping.
    advisory : str
        Text emitted when the predicate holds.
    """

    name: str
    predicate: Predicate
    advisory: str


def evaluate(
    metrics: Mapping[str, MetricResult],
    rules: Sequence[PolicyRule],
) -> list[str]:
    """Return the advisories of every matching rule, in declaration order.

    Each rule fires at most once no matter how many entities satisfy it.
    """
    view = MappingProxyType(dict(metrics))
    return [rule.advisory for rule in rules if rule.predicate(view)]


def volatility_above(threshold: float) -> Predicate:
    """True when any entity's defined volatility exceeds *threshold*."""

    def predicate(metrics: Mapping[str, MetricResult]) -> bool:
        return any(
            m.volatility is not None and m.volatility > threshold
            for m in metrics.values()
        )

    return predicate


def resilience_below(threshold: float) -> Predicate:
    """True when any entity's defined resilience is under *threshold*."""

    def predicate(metrics: Mapping[str, MetricResult]) -> bool:
        return any(
            m.resilience is not None and m.resilience < threshold
            for m in metrics.values()
        )

    return predicate


DEFAULT_RULES: tuple[PolicyRule, ...] = (
    PolicyRule(
        name='high_volatility',
        predicate=volatility_above(VOLATILITY_THRESHOLD),
        advisory=(
            'Invest in retraining and upskilling programs for industries '
            'with high employment volatility.'
        ),
    ),
    PolicyRule(
        name='low_resilience',
        predicate=resilience_below(RESILIENCE_THRESHOLD),
        advisory=(
            'Support hiring incentives and job-placement services in '
            'industries with low hiring resilience.'
        ),
    ),
)
