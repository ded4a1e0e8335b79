"""Diversification score (0-100) built on the Herfindahl-Hirschman Index.

Four sub-scores, 25 points each by default:
  - Asset classes, Regions, Sectors: HHI over the classified buckets of
    each allocation view, mapped to points on a square-root curve
  - Concentration: full points minus a capped penalty per holding above
    ``max_position_percent``

HHI here uses percentage shares (range 0 .. 10000).  The scorer does not
care whether it receives nominal positions or look-through slices; slices
are grouped back into their source holding for the concentration and
coverage figures.
"""

import math
from typing import Iterable, Optional

from diversification.core.allocation import (
    aggregate,
    by_asset_class,
    by_region,
    by_sector,
    classified_buckets,
)
from diversification.core.config import (
    ScoreWeights,
    get_default_config,
    validate_max_position_percent,
)
from diversification.core.holdings import group_by_holding, holding_weights
from diversification.core.models import (
    UNCLASSIFIED,
    AllocationBucket,
    Coverage,
    Penalty,
    Position,
    ScoreDebug,
    ScoreResult,
    SubScore,
)

MAX_HHI = 10000

SUBSCORE_ASSET_CLASSES = "Asset classes"
SUBSCORE_REGIONS = "Regions"
SUBSCORE_SECTORS = "Sectors"
SUBSCORE_CONCENTRATION = "Concentration"

# Share of the budget a single oversized holding can cost at most.
_MAX_PENALTY_SHARE = 1 / 3
_PENALTY_PER_EXCESS_POINT = 0.5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    ``round()`` rounds halves to even (``round(2.5) == 2``); scores must
    not depend on that.
    """
    return int(math.floor(value + 0.5))


def _fmt_threshold(value: float) -> str:
    return f"{value:g}"


def compute_hhi(buckets: Iterable[AllocationBucket]) -> int:
    """Compute the HHI of an allocation view.

    Unclassified buckets and empty buckets are left out and the remaining
    shares are re-based to 100.  Zero or one remaining bucket counts as
    fully concentrated.

    Parameters
    ----------
    buckets : iterable of AllocationBucket

    Returns
    -------
    int
        HHI between 0 and 10000, rounded half-up.
    """
    shares = [
        b.percentage_of_portfolio for b in buckets
        if b.label != UNCLASSIFIED and b.percentage_of_portfolio > 0
    ]
    if len(shares) <= 1:
        return MAX_HHI
    total = sum(shares)
    if total <= 0:
        return MAX_HHI
    return round_half_up(sum((s / total * 100) ** 2 for s in shares))


def hhi_to_score(hhi: float, max_points: float) -> int:
    """Map HHI to points: ``sqrt(1 - hhi/10000) * max_points``, rounded half-up."""
    return round_half_up(math.sqrt(max(0.0, 1 - hhi / MAX_HHI)) * max_points)


def hhi_normalized(hhi: float) -> int:
    """Diversity on a 0-100 scale (100 = perfectly spread)."""
    return round_half_up((1 - hhi / MAX_HHI) * 100)


def score_label(total_score: float) -> str:
    if total_score >= 80:
        return "Excellent"
    if total_score >= 60:
        return "Good"
    if total_score >= 40:
        return "Moderate"
    return "Weak"


def concentration_score(
    weights: list[tuple[str, float]],
    max_position_percent: float,
    max_points: float,
) -> tuple[int, list[Penalty]]:
    """Score single-holding concentration.

    Parameters
    ----------
    weights : list[tuple[str, float]]
        ``(identifier, weight_pct)`` per holding.
    max_position_percent : float
        Weight above which a holding is penalised.
    max_points : float
        Budget of the sub-score.

    Returns
    -------
    tuple[int, list[Penalty]]
        Score (0 for an empty portfolio) and one penalty per offender.
    """
    if not weights:
        return 0, []

    penalties: list[Penalty] = []
    total_penalty = 0.0
    cap = max_points * _MAX_PENALTY_SHARE
    threshold = _fmt_threshold(max_position_percent)
    for identifier, weight in weights:
        if weight <= max_position_percent:
            continue
        excess = weight - max_position_percent
        points = min(excess * _PENALTY_PER_EXCESS_POINT, cap)
        total_penalty += points
        penalties.append(Penalty(
            identifier=identifier,
            code=f"POSITION_{identifier}",
            label=f"{identifier} > {threshold}%",
            points=round_half_up(points * 10) / 10,
            detail=f"{identifier} represents {weight:.1f}% (excess: {excess:.1f}%)",
        ))

    if not penalties:
        return round_half_up(max_points), []
    return max(0, round_half_up(max_points - total_penalty)), penalties


def _count_classified(buckets: list[AllocationBucket]) -> int:
    return len(classified_buckets(buckets))


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def _dimension_subscore(name: str, buckets: list[AllocationBucket], max_points: float,
                        singular: str, plural: str) -> SubScore:
    hhi = compute_hhi(buckets)
    count = _count_classified(buckets)
    return SubScore(
        name=name,
        score=hhi_to_score(hhi, max_points),
        max_score=max_points,
        hhi_raw=hhi,
        hhi_normalized=hhi_normalized(hhi),
        item_count=count,
        description=f"Spread across {_plural(count, singular, plural)}",
    )


def compute_coverage(positions: Iterable[Position]) -> Coverage:
    """Count holdings with both region and sector known.

    Look-through slices are counted once per source holding, which is
    classified when all its slices are.
    """
    groups = group_by_holding(positions)
    unclassified = [
        identifier for identifier, members in groups
        if not all(p.is_classified for p in members)
    ]
    total = len(groups)
    classified = total - len(unclassified)
    return Coverage(
        total_positions=total,
        classified_positions=classified,
        classified_percent=(classified / total * 100) if total > 0 else 0.0,
        unclassified_identifiers=tuple(unclassified),
    )


def score(
    positions: Iterable[Position],
    max_position_percent: Optional[float] = None,
    weights: Optional[ScoreWeights] = None,
) -> ScoreResult:
    """Compute the diversification score of *positions*.

    Parameters
    ----------
    positions : iterable of Position
        Nominal positions or look-through slices.
    max_position_percent : float, optional
        Single-holding threshold in percent, within (0, 100].  Defaults to
        the configured threshold (10).
    weights : ScoreWeights, optional
        Sub-score budgets.  Defaults to the configured budgets (25 each).

    Returns
    -------
    ScoreResult
        An empty portfolio scores 0 everywhere without raising.

    Raises
    ------
    InvalidInputError
        If *max_position_percent* is out of range.
    """
    if max_position_percent is None or weights is None:
        defaults = get_default_config()
        if max_position_percent is None:
            max_position_percent = defaults.max_position_percent
        weights = weights or defaults.weights
    max_position_percent = validate_max_position_percent(max_position_percent)
    positions = list(positions)

    alloc_class = aggregate(positions, by_asset_class)
    alloc_region = aggregate(positions, by_region)
    alloc_sector = aggregate(positions, by_sector)

    class_sub = _dimension_subscore(
        SUBSCORE_ASSET_CLASSES, alloc_class, weights.asset_class, "asset class", "asset classes"
    )
    region_sub = _dimension_subscore(
        SUBSCORE_REGIONS, alloc_region, weights.region, "region", "regions"
    )
    sector_sub = _dimension_subscore(
        SUBSCORE_SECTORS, alloc_sector, weights.sector, "sector", "sectors"
    )

    per_holding = holding_weights(positions)
    conc_points, penalties = concentration_score(
        per_holding, max_position_percent, weights.concentration
    )
    over = len(penalties)
    threshold = _fmt_threshold(max_position_percent)
    conc_sub = SubScore(
        name=SUBSCORE_CONCENTRATION,
        score=conc_points,
        max_score=weights.concentration,
        hhi_raw=0,
        hhi_normalized=100 if over == 0 else max(0, 100 - over * 20),
        item_count=len(per_holding) - over,
        description=(
            f"No holding > {threshold}%" if over == 0
            else f"{_plural(over, 'holding', 'holdings')} > {threshold}%"
        ),
    )

    subscores = (class_sub, region_sub, sector_sub, conc_sub)
    total = max(0, min(100, sum(s.score for s in subscores)))

    debug = ScoreDebug(
        by_asset_class=tuple(alloc_class),
        by_region=tuple(alloc_region),
        by_sector=tuple(alloc_sector),
        holding_weights=tuple(per_holding),
        raw_hhi={
            "asset_class": class_sub.hhi_raw,
            "region": region_sub.hhi_raw,
            "sector": sector_sub.hhi_raw,
        },
    )

    return ScoreResult(
        total_score=total,
        label=score_label(total),
        subscores=subscores,
        penalties=tuple(penalties),
        coverage=compute_coverage(positions),
        debug=debug,
    )
