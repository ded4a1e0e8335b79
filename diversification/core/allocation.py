"""Allocation aggregation: group positions by a classification key.

Mirrors the axis grouping of the concentration analysis, but keeps monetary
totals and member positions so the caller can drill down from a bucket to
the holdings inside it.
"""

from typing import Callable, Iterable, Optional

from diversification.core.models import (
    UNCLASSIFIED,
    AllocationBucket,
    Position,
    normalize_label,
)


def by_asset_class(position: Position) -> str:
    return position.asset_class


def by_region(position: Position) -> str:
    return position.region


def by_sector(position: Position) -> str:
    return position.sector


def buckets_from_totals(
    totals: dict[str, float],
    members: dict[str, list],
    denominator: Optional[float] = None,
) -> list[AllocationBucket]:
    """Turn per-label accumulators into buckets sorted by value, largest first.

    Parameters
    ----------
    totals : dict[str, float]
        label -> summed value, in encounter order.
    members : dict[str, list]
        label -> positions that contributed to the label.
    denominator : float, optional
        Value the percentages are expressed against.  Defaults to the sum
        of *totals*.  A zero denominator yields 0% everywhere.
    """
    if denominator is None:
        denominator = sum(totals.values())
    buckets = [
        AllocationBucket(
            label=label,
            total_value=value,
            percentage_of_portfolio=(value / denominator * 100) if denominator > 0 else 0.0,
            member_positions=tuple(members.get(label, ())),
        )
        for label, value in totals.items()
    ]
    # sorted() is stable: equal values keep encounter order.
    return sorted(buckets, key=lambda b: b.total_value, reverse=True)


def aggregate(
    positions: Iterable[Position],
    key_fn: Callable[[Position], Optional[str]],
) -> list[AllocationBucket]:
    """Group *positions* by ``key_fn(position)``.

    Missing or sentinel keys are grouped under ``Unclassified`` rather than
    dropped.  Percentages are shares of the summed market value.
    """
    totals: dict[str, float] = {}
    members: dict[str, list] = {}
    for position in positions:
        label = normalize_label(key_fn(position))
        totals[label] = totals.get(label, 0.0) + position.market_value
        members.setdefault(label, []).append(position)
    return buckets_from_totals(totals, members)


def classified_buckets(buckets: Iterable[AllocationBucket]) -> list[AllocationBucket]:
    """Drop the ``Unclassified`` bucket."""
    return [b for b in buckets if b.label != UNCLASSIFIED]


def compare_exposures(
    nominal: Iterable[AllocationBucket],
    look_through: Iterable[AllocationBucket],
) -> list[dict]:
    """Side-by-side nominal vs look-through percentages per label.

    Returns
    -------
    list[dict]
        ``{label, nominal_percentage, look_through_percentage, difference}``
        sorted by look-through percentage, largest first.
    """
    nominal_pct = {b.label: b.percentage_of_portfolio for b in nominal}
    look_through_pct = {b.label: b.percentage_of_portfolio for b in look_through}

    labels = list(nominal_pct)
    labels.extend(label for label in look_through_pct if label not in nominal_pct)

    rows = []
    for label in labels:
        before = nominal_pct.get(label, 0.0)
        after = look_through_pct.get(label, 0.0)
        rows.append({
            "label": label,
            "nominal_percentage": before,
            "look_through_percentage": after,
            "difference": after - before,
        })
    rows.sort(key=lambda r: r["look_through_percentage"], reverse=True)
    return rows
