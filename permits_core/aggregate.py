"""Generic group-by helpers shared by the metric modules."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Generic, Hashable, Iterable, List, Optional, TypeVar

from permits_core.records import PermitRecord

A = TypeVar("A")
K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class ValueAggregate:
    sum: float = 0.0
    count: int = 0

    def add(self, value: float) -> "ValueAggregate":
        return ValueAggregate(self.sum + value, self.count + 1)


@dataclass(frozen=True)
class Aggregator(Generic[A]):
    """Fold description: a fresh accumulator plus a step applied per record."""

    initial: Callable[[], A]
    step: Callable[[A, PermitRecord], A]


COUNT: Aggregator[int] = Aggregator(initial=lambda: 0, step=lambda acc, _record: acc + 1)
JOB_VALUE: Aggregator[ValueAggregate] = Aggregator(
    initial=ValueAggregate,
    step=lambda acc, record: acc.add(float(record.job_value or 0.0)),
)


def group_by_then_aggregate(
    records: Iterable[PermitRecord],
    key_fn: Callable[[PermitRecord], Optional[K]],
    aggregator: Aggregator[A],
    classifier_fn: Optional[Callable[[PermitRecord], Optional[Hashable]]] = None,
) -> Dict[K, Any]:
    """Group records by ``key_fn`` and fold each group with ``aggregator``.

    A record whose key is None is skipped. Without a classifier the result maps
    key -> accumulator. With one it maps key -> {sub_key: accumulator}; the outer
    group is still created when the classifier returns None for a record, so a
    key can exist with an empty inner mapping.
    """
    groups: Dict[K, Any] = {}
    for record in records:
        key = key_fn(record)
        if key is None:
            continue
        if classifier_fn is None:
            groups[key] = aggregator.step(groups.get(key, aggregator.initial()), record)
            continue
        inner = groups.setdefault(key, {})
        sub_key = classifier_fn(record)
        if sub_key is None:
            continue
        inner[sub_key] = aggregator.step(inner.get(sub_key, aggregator.initial()), record)
    return groups


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero. Non-finite values give 0."""
    if not math.isfinite(value):
        return 0
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def average_in_thousands(agg: ValueAggregate) -> int:
    if agg.count <= 0:
        return 0
    return round_half_up(agg.sum / agg.count / 1000)


def percentage(part: float, whole: float) -> int:
    if not whole:
        return 0
    return round_half_up(part / whole * 100)


def top_n(rows: List[Dict[str, Any]], sort_key: str, limit: int, *, name_key: str = "county") -> List[Dict[str, Any]]:
    ordered = sorted(rows, key=lambda r: (-r[sort_key], str(r[name_key])))
    return ordered[: max(0, limit)]


def value_label(value: int) -> str:
    return f"{value}K" if value > 0 else ""


def count_label(value: int, threshold: Optional[int]) -> str:
    if threshold is None or value > threshold:
        return str(value)
    return ""
