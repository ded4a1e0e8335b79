"""Value types shared by the resolver, aggregator, look-through and scoring modules.

Every type is a frozen dataclass: positions are owned by the calling layer
and the engine never mutates them.  ``to_dict()`` helpers produce the plain
dict shapes the Markdown formatters consume.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from diversification.core.errors import InvalidInputError

UNCLASSIFIED = "Unclassified"

# Labels that callers use to mean "no classification known".
_MISSING_LABELS = frozenset({"", "unknown", "unclassified", "n/a", "none"})


def is_unclassified(label: Optional[str]) -> bool:
    """Return True when *label* carries no classification."""
    if label is None:
        return True
    return label.strip().lower() in _MISSING_LABELS


def normalize_label(label: Optional[str]) -> str:
    """Collapse every missing-label spelling into the ``UNCLASSIFIED`` sentinel."""
    if is_unclassified(label):
        return UNCLASSIFIED
    return label.strip()


def require_finite_non_negative(name: str, value) -> float:
    """Validate a numeric input and return it as float.

    Raises
    ------
    InvalidInputError
        If *value* is not a number, is NaN/infinite, or is negative.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number, got bool {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    if number < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value!r}")
    return number


@dataclass(frozen=True)
class Classification:
    """A (region, sector, asset class) triple."""

    region: str = UNCLASSIFIED
    sector: str = UNCLASSIFIED
    asset_class: str = UNCLASSIFIED

    @property
    def is_unclassified(self) -> bool:
        return (
            self.region == UNCLASSIFIED
            and self.sector == UNCLASSIFIED
            and self.asset_class == UNCLASSIFIED
        )

    def to_dict(self) -> dict:
        return {
            "region": self.region,
            "sector": self.sector,
            "asset_class": self.asset_class,
        }


@dataclass(frozen=True)
class Position:
    """One portfolio line as handed over by the holdings layer.

    ``source_identifier`` is only set on synthetic look-through slices and
    names the holding the slice was cut from.  ``source_market_value`` is set
    alongside it and keeps that holding's nominal market value.
    """

    identifier: str
    display_name: str = ""
    market_value: float = 0.0
    quantity: float = 0.0
    region: str = UNCLASSIFIED
    sector: str = UNCLASSIFIED
    asset_class: str = UNCLASSIFIED
    source_identifier: Optional[str] = None
    source_market_value: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.identifier, str) or not self.identifier.strip():
            raise InvalidInputError(
                f"identifier must be a non-empty string, got {self.identifier!r}"
            )
        label = f"market_value of {self.identifier}"
        object.__setattr__(
            self, "market_value", require_finite_non_negative(label, self.market_value)
        )
        object.__setattr__(
            self,
            "quantity",
            require_finite_non_negative(f"quantity of {self.identifier}", self.quantity),
        )
        if self.source_market_value is not None:
            object.__setattr__(
                self,
                "source_market_value",
                require_finite_non_negative(
                    f"source_market_value of {self.identifier}", self.source_market_value
                ),
            )
        for name in ("display_name", "region", "sector", "asset_class"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise InvalidInputError(
                    f"{name} of {self.identifier} must be a string, got {value!r}"
                )
        object.__setattr__(self, "display_name", self.display_name or "")
        object.__setattr__(self, "region", normalize_label(self.region))
        object.__setattr__(self, "sector", normalize_label(self.sector))
        object.__setattr__(self, "asset_class", normalize_label(self.asset_class))

    @property
    def is_classified(self) -> bool:
        """Region and sector are both known (asset class is not required)."""
        return self.region != UNCLASSIFIED and self.sector != UNCLASSIFIED

    @property
    def classification(self) -> Classification:
        return Classification(self.region, self.sector, self.asset_class)

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "display_name": self.display_name,
            "market_value": self.market_value,
            "quantity": self.quantity,
            "region": self.region,
            "sector": self.sector,
            "asset_class": self.asset_class,
            "is_classified": self.is_classified,
            "source_identifier": self.source_identifier,
            "source_market_value": self.source_market_value,
        }


@dataclass(frozen=True)
class CompositionEntry:
    """Factsheet breakdown of a composite instrument (percentages, not normalised)."""

    identifier: str
    display_name: str
    geographic_weights: Mapping[str, float]
    sectoral_weights: Mapping[str, float]
    last_updated: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(
            self, "geographic_weights", MappingProxyType(dict(self.geographic_weights))
        )
        object.__setattr__(
            self, "sectoral_weights", MappingProxyType(dict(self.sectoral_weights))
        )


@dataclass(frozen=True)
class AllocationBucket:
    label: str
    total_value: float
    percentage_of_portfolio: float
    member_positions: tuple = ()

    @property
    def member_identifiers(self) -> list[str]:
        return [p.identifier for p in self.member_positions]

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "total_value": self.total_value,
            "percentage_of_portfolio": self.percentage_of_portfolio,
            "members": self.member_identifiers,
        }


@dataclass(frozen=True)
class SubScore:
    name: str
    score: int
    max_score: float
    hhi_raw: int
    hhi_normalized: int
    item_count: int
    description: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "score": self.score,
            "max_score": self.max_score,
            "hhi_raw": self.hhi_raw,
            "hhi_normalized": self.hhi_normalized,
            "item_count": self.item_count,
            "description": self.description,
        }


@dataclass(frozen=True)
class Penalty:
    """A named point deduction from the concentration sub-score."""

    identifier: str
    code: str
    label: str
    points: float
    detail: str

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "code": self.code,
            "label": self.label,
            "points": self.points,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class Coverage:
    total_positions: int
    classified_positions: int
    classified_percent: float
    unclassified_identifiers: tuple = ()

    def to_dict(self) -> dict:
        return {
            "total_positions": self.total_positions,
            "classified_positions": self.classified_positions,
            "classified_percent": self.classified_percent,
            "unclassified_identifiers": list(self.unclassified_identifiers),
        }


@dataclass(frozen=True)
class ScoreDebug:
    """Intermediate values kept for "show me how my score was computed"."""

    by_asset_class: tuple = ()
    by_region: tuple = ()
    by_sector: tuple = ()
    holding_weights: tuple = ()  # ((identifier, weight_pct), ...)
    raw_hhi: Mapping[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "by_asset_class": [b.to_dict() for b in self.by_asset_class],
            "by_region": [b.to_dict() for b in self.by_region],
            "by_sector": [b.to_dict() for b in self.by_sector],
            "holding_weights": [
                {"identifier": ident, "weight": weight}
                for ident, weight in self.holding_weights
            ],
            "raw_hhi": dict(self.raw_hhi),
        }


@dataclass(frozen=True)
class ScoreResult:
    total_score: int
    label: str
    subscores: tuple
    penalties: tuple
    coverage: Coverage
    debug: ScoreDebug = field(default_factory=ScoreDebug)

    def subscore(self, name: str) -> SubScore:
        for sub in self.subscores:
            if sub.name == name:
                return sub
        raise KeyError(name)

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "label": self.label,
            "subscores": [s.to_dict() for s in self.subscores],
            "penalties": [p.to_dict() for p in self.penalties],
            "coverage": self.coverage.to_dict(),
            "debug": self.debug.to_dict(),
        }


@dataclass(frozen=True)
class LookThroughResult:
    real_geographic: tuple
    real_sectoral: tuple
    has_data: bool
    coverage_percent: float
    decomposed_identifiers: tuple = ()
    non_decomposed_identifiers: tuple = ()

    def to_dict(self) -> dict:
        return {
            "real_geographic": [b.to_dict() for b in self.real_geographic],
            "real_sectoral": [b.to_dict() for b in self.real_sectoral],
            "has_data": self.has_data,
            "coverage_percent": self.coverage_percent,
            "decomposed_identifiers": list(self.decomposed_identifiers),
            "non_decomposed_identifiers": list(self.non_decomposed_identifiers),
        }


@dataclass(frozen=True)
class ConcentrationRisk:
    kind: str  # "single_holding", "sector" or "region"
    severity: str  # "high", "medium" or "low"
    title: str
    description: str
    percentage: float
    threshold: float
    identifiers: tuple = ()

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "percentage": self.percentage,
            "threshold": self.threshold,
            "identifiers": list(self.identifiers),
        }


@dataclass(frozen=True)
class Recommendation:
    key: str
    title: str
    description: str
    priority: str
    related_identifiers: tuple = ()

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "related_identifiers": list(self.related_identifiers),
        }
