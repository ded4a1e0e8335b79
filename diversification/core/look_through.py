"""Look-through decomposition of composite instruments (ETFs, index funds).

Splits each composite holding with registry data into its factsheet
geographic and sectoral exposure, and lets every other holding pass through
under its own region and sector.

Weight maps are used as stored.  A factsheet that sums to less than 100
under-allocates its holding: the shortfall shows up as missing percentage
in the look-through buckets, never as an extra "Other" bucket.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from diversification.core.allocation import buckets_from_totals
from diversification.core.config import ScoringConfig, get_default_config
from diversification.core.models import (
    LookThroughResult,
    Position,
    normalize_label,
    require_finite_non_negative,
)
from diversification.core.registry import CompositionRegistry, get_default_registry

logger = logging.getLogger(__name__)


def _dedupe(identifiers: list[str]) -> tuple:
    return tuple(dict.fromkeys(identifiers))


def _add(totals: dict, members: dict, label: str, value: float, position: Position,
         once: bool = False) -> None:
    totals[label] = totals.get(label, 0.0) + value
    bucket_members = members.setdefault(label, [])
    if once and any(m is position for m in bucket_members):
        return
    bucket_members.append(position)


def decompose(
    positions: Iterable[Position],
    total_value: float,
    registry: Optional[CompositionRegistry] = None,
    config: Optional[ScoringConfig] = None,
) -> LookThroughResult:
    """Compute real geographic and sectoral exposure.

    Parameters
    ----------
    positions : iterable of Position
        Holdings in their nominal classification.
    total_value : float
        Portfolio value the bucket percentages and coverage are expressed
        against.  Usually the sum of market values.
    registry : CompositionRegistry, optional
        Defaults to the packaged registry.
    config : ScoringConfig, optional
        Supplies the asset classes treated as composite.  Defaults to
        the configured settings (``ETF``).

    Returns
    -------
    LookThroughResult
        ``has_data`` is True when at least one holding was decomposed.
        Composite holdings without registry data are listed in
        ``non_decomposed_identifiers``.

    Raises
    ------
    InvalidInputError
        If *total_value* is negative or not finite.
    """
    total_value = require_finite_non_negative("total_value", total_value)
    registry = registry if registry is not None else get_default_registry()
    config = config or get_default_config()

    geo_totals: dict[str, float] = {}
    geo_members: dict[str, list] = {}
    sec_totals: dict[str, float] = {}
    sec_members: dict[str, list] = {}
    decomposed: list[str] = []
    not_decomposed: list[str] = []
    decomposed_value = 0.0

    for position in positions:
        is_composite = config.is_composite(position.asset_class)
        entry = registry.lookup(position.identifier) if is_composite else None

        if entry is not None:
            decomposed.append(position.identifier)
            decomposed_value += position.market_value
            for label, pct in entry.geographic_weights.items():
                _add(geo_totals, geo_members, label,
                     position.market_value * pct / 100, position, once=True)
            for label, pct in entry.sectoral_weights.items():
                _add(sec_totals, sec_members, label,
                     position.market_value * pct / 100, position, once=True)
            continue

        if is_composite:
            logger.debug("%s is composite but has no composition data", position.identifier)
            not_decomposed.append(position.identifier)
        _add(geo_totals, geo_members, normalize_label(position.region),
             position.market_value, position)
        _add(sec_totals, sec_members, normalize_label(position.sector),
             position.market_value, position)

    return LookThroughResult(
        real_geographic=tuple(buckets_from_totals(geo_totals, geo_members, total_value)),
        real_sectoral=tuple(buckets_from_totals(sec_totals, sec_members, total_value)),
        has_data=bool(decomposed),
        coverage_percent=(decomposed_value / total_value * 100) if total_value > 0 else 0.0,
        decomposed_identifiers=_dedupe(decomposed),
        non_decomposed_identifiers=_dedupe(not_decomposed),
    )


def build_look_through_positions(
    positions: Iterable[Position],
    registry: Optional[CompositionRegistry] = None,
    config: Optional[ScoringConfig] = None,
) -> list[Position]:
    """Replace each decomposable composite by synthetic region x sector slices.

    A slice carries ``market_value * g / 100 * s / sum(s)`` for geographic
    weight ``g`` and sectoral weight ``s``, so the slices of one region add
    up to that region's look-through value.  Slices keep the composite's
    asset class, name it in ``source_identifier`` and carry its nominal
    value in ``source_market_value``.  Every other position is returned
    unchanged, in input order.
    """
    registry = registry if registry is not None else get_default_registry()
    config = config or get_default_config()

    result: list[Position] = []
    for position in positions:
        entry = None
        if config.is_composite(position.asset_class):
            entry = registry.lookup(position.identifier)
        if entry is None:
            result.append(position)
            continue

        sector_total = sum(entry.sectoral_weights.values())
        for region, g in entry.geographic_weights.items():
            regional_value = position.market_value * g / 100
            if sector_total <= 0:
                slices = [(position.sector, regional_value)]
            else:
                slices = [
                    (sector, regional_value * s / sector_total)
                    for sector, s in entry.sectoral_weights.items()
                ]
            for sector, value in slices:
                if value <= 0:
                    continue
                result.append(replace(
                    position,
                    identifier=f"{position.identifier}:{region}:{sector}",
                    market_value=value,
                    quantity=0.0,
                    region=region,
                    sector=sector,
                    source_identifier=position.identifier,
                    source_market_value=position.market_value,
                ))
    return result
