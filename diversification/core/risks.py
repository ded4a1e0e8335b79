"""Concentration risk detection and rebalancing recommendations.

Three kinds of risk are reported, most severe first:
  - single_holding: one holding above ``max_position_percent``
  - sector: one sector above the sector threshold (default 40%)
  - region: one region above the region threshold (default 70%)

Unclassified buckets never produce a risk.
"""

from typing import Iterable, Optional

from diversification.core.config import RiskConfig, get_default_config
from diversification.core.holdings import group_by_holding, holding_value
from diversification.core.models import (
    UNCLASSIFIED,
    AllocationBucket,
    ConcentrationRisk,
    Position,
    Recommendation,
)

_SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}

# Keywords marking an emerging-markets region and a bond asset class.
_EMERGING_KEYWORDS = ("emerging", "émergent")
_BOND_KEYWORDS = ("bond", "obligation")

# Related holdings listed on a sector or region recommendation.
_MAX_RELATED = 3


def _bucket_holdings(bucket: AllocationBucket) -> tuple:
    """Member identifiers, with look-through slices reported as their source."""
    names = [p.source_identifier or p.identifier for p in bucket.member_positions]
    return tuple(dict.fromkeys(names))


def _single_holding_risks(
    positions: list[Position],
    max_position_percent: float,
    config: RiskConfig,
) -> list[ConcentrationRisk]:
    groups = group_by_holding(positions)
    values = [holding_value(members) for _, members in groups]
    total = sum(values)
    if total <= 0:
        return []

    rows = []
    for (identifier, members), value in zip(groups, values):
        weight = value / total * 100
        if weight > max_position_percent:
            rows.append((identifier, members[0].display_name or identifier, weight))
    rows.sort(key=lambda r: r[2], reverse=True)

    return [
        ConcentrationRisk(
            kind="single_holding",
            severity=config.single_holding_severity(weight),
            title=f"Concentrated holding: {identifier}",
            description=(
                f"{name} represents {weight:.1f}% of the portfolio. "
                "Spreading it out would reduce single-issuer risk."
            ),
            percentage=weight,
            threshold=max_position_percent,
            identifiers=(identifier,),
        )
        for identifier, name, weight in rows[:config.single_holding_max_reported]
    ]


def detect_concentration_risks(
    positions: Iterable[Position],
    by_region: Iterable[AllocationBucket],
    by_sector: Iterable[AllocationBucket],
    max_position_percent: Optional[float] = None,
    config: Optional[RiskConfig] = None,
) -> list[ConcentrationRisk]:
    """Detect over-weighted holdings, sectors and regions.

    Parameters
    ----------
    positions : iterable of Position
        Holdings (look-through slices are grouped by source).
    by_region, by_sector : iterable of AllocationBucket
        Allocation views the sector and region checks run on.
    max_position_percent : float, optional
        Single-holding threshold in percent.  Defaults to the configured one.
    config : RiskConfig, optional
        Thresholds, severity bands and report limits.  Defaults to the
        configured ``risks`` section.

    Returns
    -------
    list[ConcentrationRisk]
        Sorted by severity (high first, stable within a severity), capped
        at ``config.max_reported``.
    """
    if max_position_percent is None:
        max_position_percent = get_default_config().max_position_percent
    config = config or get_default_config().risks
    risks = _single_holding_risks(list(positions), max_position_percent, config)

    for bucket in by_sector:
        pct = bucket.percentage_of_portfolio
        if bucket.label == UNCLASSIFIED or pct <= config.sector.threshold:
            continue
        risks.append(ConcentrationRisk(
            kind="sector",
            severity=config.sector.severity(pct),
            title=f"Sector overweight: {bucket.label}",
            description=(
                f"The {bucket.label} sector represents {pct:.1f}% of the portfolio. "
                "Consider diversifying into other sectors."
            ),
            percentage=pct,
            threshold=config.sector.threshold,
            identifiers=_bucket_holdings(bucket),
        ))

    for bucket in by_region:
        pct = bucket.percentage_of_portfolio
        if bucket.label == UNCLASSIFIED or pct <= config.region.threshold:
            continue
        risks.append(ConcentrationRisk(
            kind="region",
            severity=config.region.severity(pct),
            title=f"Geographic concentration: {bucket.label}",
            description=(
                f"{bucket.label} represents {pct:.1f}% of the portfolio. "
                "More international exposure could improve diversification."
            ),
            percentage=pct,
            threshold=config.region.threshold,
            identifiers=_bucket_holdings(bucket),
        ))

    risks.sort(key=lambda r: _SEVERITY_ORDER[r.severity])
    return risks[:config.max_reported]


def _has_bucket(buckets: list[AllocationBucket], keywords: tuple, min_percent: float) -> bool:
    return any(
        any(kw in b.label.lower() for kw in keywords) and b.percentage_of_portfolio > min_percent
        for b in buckets
    )


def generate_recommendations(
    risks: Iterable[ConcentrationRisk],
    by_asset_class: Iterable[AllocationBucket],
    by_region: Iterable[AllocationBucket],
    config: Optional[RiskConfig] = None,
) -> list[Recommendation]:
    """Turn detected risks and allocation gaps into recommendations.

    One recommendation per risk, then a suggestion to add emerging markets
    and one to consider bonds when neither has a bucket above
    ``config.recommendation_min_bucket_percent``.
    """
    config = config or get_default_config().risks
    by_asset_class = list(by_asset_class)
    by_region = list(by_region)
    recs: list[Recommendation] = []

    for index, risk in enumerate(risks):
        if risk.kind == "single_holding":
            holding = risk.identifiers[0] if risk.identifiers else "this holding"
            recs.append(Recommendation(
                key=f"rebalance-holding-{index}",
                title="Rebalance the holding",
                description=(
                    f"{risk.percentage:.1f}% sits in {holding}. A sector or world "
                    "index fund would reduce single-issuer risk."
                ),
                priority=risk.severity,
                related_identifiers=risk.identifiers,
            ))
        elif risk.kind == "sector":
            label = risk.title.split(": ", 1)[-1]
            recs.append(Recommendation(
                key=f"diversify-sector-{index}",
                title=f"Diversify away from {label}",
                description=(
                    f"{risk.percentage:.1f}% of the portfolio is concentrated in {label}. "
                    "Look at defensive or growth sectors you do not hold yet."
                ),
                priority=risk.severity,
                related_identifiers=risk.identifiers[:_MAX_RELATED],
            ))
        elif risk.kind == "region":
            label = risk.title.split(": ", 1)[-1]
            recs.append(Recommendation(
                key=f"international-exposure-{index}",
                title="Add international exposure",
                description=(
                    f"With {risk.percentage:.1f}% in {label}, consider emerging-market "
                    "funds or other regions."
                ),
                priority=risk.severity,
                related_identifiers=risk.identifiers[:_MAX_RELATED],
            ))

    min_pct = config.recommendation_min_bucket_percent
    if by_region and not _has_bucket(by_region, _EMERGING_KEYWORDS, min_pct):
        recs.append(Recommendation(
            key="add-emerging-markets",
            title="Add emerging-market exposure",
            description=(
                "The portfolio has little exposure to emerging markets. A broad "
                "emerging-markets fund would widen geographic diversification."
            ),
            priority="low",
        ))

    if by_asset_class and not _has_bucket(by_asset_class, _BOND_KEYWORDS, min_pct):
        recs.append(Recommendation(
            key="consider-bonds",
            title="Consider bonds",
            description=(
                "A bond allocation could lower overall volatility, especially for "
                "horizons under ten years."
            ),
            priority="low",
        ))

    return recs[:config.max_recommendations]
