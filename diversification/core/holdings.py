"""Boundary normalisation: raw holding records -> canonical ``Position``.

Upstream data arrives in several shapes (``value`` vs ``valueEUR``,
``ticker`` vs ``symbol``, camelCase labels).  Everything is mapped onto one
``Position`` here, so the engine itself never branches on field names.
Missing region or sector labels are filled from the classification
resolver.
"""

import logging
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from diversification.core.classification import ClassificationResolver, get_default_resolver
from diversification.core.errors import InvalidInputError
from diversification.core.models import UNCLASSIFIED, Position, is_unclassified

logger = logging.getLogger(__name__)

# Accepted field names, in priority order.
IDENTIFIER_FIELDS = ("identifier", "ticker", "symbol")
NAME_FIELDS = ("display_name", "name")
VALUE_FIELDS = ("market_value", "value", "valueEUR", "value_eur")
QUANTITY_FIELDS = ("quantity", "shares")
REGION_FIELDS = ("region",)
SECTOR_FIELDS = ("sector",)
ASSET_CLASS_FIELDS = ("asset_class", "assetClass")


def _first_present(record: Mapping, fields: tuple):
    for name in fields:
        value = record.get(name)
        if value is not None:
            return value
    return None


def _label(value) -> Optional[str]:
    if value is None:
        return None
    return str(value)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def position_from_record(
    record: Mapping,
    resolver: Optional[ClassificationResolver] = None,
) -> Position:
    """Build a :class:`Position` from a loosely-shaped mapping.

    When region or sector is missing the resolver is asked for the whole
    triple.  Each missing label is then filled from the resolver's answer
    unless that answer is itself ``Unclassified``; an asset class already
    present on the record is kept.

    Raises
    ------
    InvalidInputError
        If the record has no identifier, no market value, or a value that
        is negative or not finite.
    """
    identifier = _first_present(record, IDENTIFIER_FIELDS)
    if identifier is None or not str(identifier).strip():
        raise InvalidInputError(f"record has no identifier: {dict(record)!r}")
    identifier = str(identifier).strip()

    market_value = _first_present(record, VALUE_FIELDS)
    if market_value is None:
        raise InvalidInputError(f"record {identifier} has no market value")

    display_name = _label(_first_present(record, NAME_FIELDS)) or ""
    quantity = _first_present(record, QUANTITY_FIELDS)
    region = _label(_first_present(record, REGION_FIELDS))
    sector = _label(_first_present(record, SECTOR_FIELDS))
    asset_class = _label(_first_present(record, ASSET_CLASS_FIELDS))

    if is_unclassified(region) or is_unclassified(sector):
        resolver = resolver or get_default_resolver()
        resolved, source = resolver.resolve_with_source(identifier, display_name)
        if is_unclassified(region) and resolved.region != UNCLASSIFIED:
            region = resolved.region
        if is_unclassified(sector) and resolved.sector != UNCLASSIFIED:
            sector = resolved.sector
        if is_unclassified(asset_class) and resolved.asset_class != UNCLASSIFIED:
            asset_class = resolved.asset_class
        logger.debug("%s enriched via %s", identifier, source)

    return Position(
        identifier=identifier,
        display_name=display_name,
        market_value=market_value,
        quantity=quantity if quantity is not None else 0.0,
        region=region,
        sector=sector,
        asset_class=asset_class,
    )


def positions_from_records(
    records: Iterable[Mapping],
    resolver: Optional[ClassificationResolver] = None,
) -> list[Position]:
    """Normalise a sequence of records, keeping their order."""
    return [position_from_record(record, resolver) for record in records]


# ---------------------------------------------------------------------------
# DataFrames
# ---------------------------------------------------------------------------


def _find_column(df: pd.DataFrame, fields: tuple) -> Optional[str]:
    for name in fields:
        if name in df.columns:
            return name
    return None


def positions_from_frame(
    df: pd.DataFrame,
    resolver: Optional[ClassificationResolver] = None,
) -> list[Position]:
    """Normalise a DataFrame with one row per position.

    Column names follow the same aliases as :func:`position_from_record`.
    Empty label cells (NaN) count as missing labels.

    Raises
    ------
    InvalidInputError
        If no market value column exists, or a market value is not a
        finite number.
    """
    if df.empty:
        return []

    value_col = _find_column(df, VALUE_FIELDS)
    if value_col is None:
        raise InvalidInputError(
            f"no market value column, expected one of {', '.join(VALUE_FIELDS)}"
        )
    try:
        values = pd.to_numeric(df[value_col], errors="raise").to_numpy(dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"column {value_col!r} is not numeric: {exc}") from None

    bad = ~np.isfinite(values)
    if bad.any():
        id_col = _find_column(df, IDENTIFIER_FIELDS)
        rows = df.loc[bad, id_col].tolist() if id_col else df.index[bad].tolist()
        raise InvalidInputError(f"non-finite market value for {rows}")

    cleaned = df.astype(object).where(df.notna(), None)
    return positions_from_records(cleaned.to_dict("records"), resolver)


# ---------------------------------------------------------------------------
# Holdings view
# ---------------------------------------------------------------------------


def group_by_holding(positions: Iterable[Position]) -> list[tuple[str, list[Position]]]:
    """Group look-through slices back into the holding they were cut from.

    Slices sharing a ``source_identifier`` form one group, named after the
    source.  Every other position is its own group, even when two share an
    identifier.  Groups keep first-encounter order.
    """
    groups: list[tuple[str, list[Position]]] = []
    by_source: dict[str, list[Position]] = {}
    for position in positions:
        source = position.source_identifier
        if source is None:
            groups.append((position.identifier, [position]))
            continue
        members = by_source.get(source)
        if members is None:
            members = by_source[source] = []
            groups.append((source, members))
        members.append(position)
    return groups


def holding_value(members: list[Position]) -> float:
    """Nominal value of one holding group.

    Look-through slices report their source holding's market value, so a
    factsheet that under-allocates does not shrink the holding.
    """
    source_value = members[0].source_market_value
    if source_value is not None:
        return source_value
    return sum(p.market_value for p in members)


def holding_weights(positions: Iterable[Position]) -> list[tuple[str, float]]:
    """Return ``(identifier, weight_pct)`` per holding.

    Weights are shares of the summed holding values (see
    :func:`holding_value`), all 0 when that sum is 0.
    """
    groups = group_by_holding(positions)
    values = [holding_value(members) for _, members in groups]
    total = sum(values)
    return [
        (identifier, (value / total * 100) if total > 0 else 0.0)
        for (identifier, _), value in zip(groups, values)
    ]
