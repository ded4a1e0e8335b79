"""Scoring configuration loaded from YAML.

The packaged defaults live in ``diversification/data/scoring.yaml``; the
``DIVERSIFICATION_CONFIG`` environment variable or an explicit path points
at a replacement file.  Keys missing from a replacement fall back to the
built-in defaults below.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml

from diversification.core.errors import InvalidInputError
from diversification.core.models import require_finite_non_negative

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "data" / "scoring.yaml"
CONFIG_ENV_VAR = "DIVERSIFICATION_CONFIG"

DEFAULT_MAX_POSITION_PERCENT = 10.0
DEFAULT_COMPOSITE_ASSET_CLASSES = ("ETF",)


def validate_max_position_percent(value) -> float:
    """Check that the single-holding threshold lies in (0, 100]."""
    number = require_finite_non_negative("max_position_percent", value)
    if number <= 0 or number > 100:
        raise InvalidInputError(f"max_position_percent must be in (0, 100], got {value!r}")
    return number


@dataclass(frozen=True)
class ScoreWeights:
    """Point budget of each sub-score."""

    asset_class: float = 25.0
    region: float = 25.0
    sector: float = 25.0
    concentration: float = 25.0

    def __post_init__(self):
        for name in ("asset_class", "region", "sector", "concentration"):
            object.__setattr__(
                self, name, require_finite_non_negative(f"weights.{name}", getattr(self, name))
            )

    @property
    def total(self) -> float:
        return self.asset_class + self.region + self.sector + self.concentration


@dataclass(frozen=True)
class SeverityBands:
    """Percentages above which a risk is reported, and its severity cut-offs."""

    threshold: float
    high: float
    medium: float

    def severity(self, percentage: float) -> str:
        if percentage > self.high:
            return "high"
        if percentage > self.medium:
            return "medium"
        return "low"


@dataclass(frozen=True)
class RiskConfig:
    single_holding_high: float = 20.0
    single_holding_medium: float = 15.0
    single_holding_max_reported: int = 3
    sector: SeverityBands = field(default_factory=lambda: SeverityBands(40.0, 60.0, 50.0))
    region: SeverityBands = field(default_factory=lambda: SeverityBands(70.0, 85.0, 75.0))
    max_reported: int = 5
    max_recommendations: int = 6
    recommendation_min_bucket_percent: float = 5.0

    def single_holding_severity(self, weight: float) -> str:
        if weight > self.single_holding_high:
            return "high"
        if weight > self.single_holding_medium:
            return "medium"
        return "low"


@dataclass(frozen=True)
class ScoringConfig:
    weights: ScoreWeights = field(default_factory=ScoreWeights)
    max_position_percent: float = DEFAULT_MAX_POSITION_PERCENT
    composite_asset_classes: tuple = DEFAULT_COMPOSITE_ASSET_CLASSES
    risks: RiskConfig = field(default_factory=RiskConfig)

    def is_composite(self, asset_class: Optional[str]) -> bool:
        """Whether *asset_class* marks a look-through candidate."""
        if not asset_class:
            return False
        wanted = asset_class.strip().upper()
        return any(wanted == c.strip().upper() for c in self.composite_asset_classes)


def _bands(raw: dict, default: SeverityBands) -> SeverityBands:
    return SeverityBands(
        threshold=float(raw.get("threshold", default.threshold)),
        high=float(raw.get("high", default.high)),
        medium=float(raw.get("medium", default.medium)),
    )


def parse_scoring_config(raw: Optional[dict]) -> ScoringConfig:
    """Build a :class:`ScoringConfig` from an already-parsed YAML mapping."""
    raw = raw or {}
    defaults = ScoringConfig()

    weights_raw = raw.get("weights") or {}
    weights = ScoreWeights(
        asset_class=weights_raw.get("asset_class", defaults.weights.asset_class),
        region=weights_raw.get("region", defaults.weights.region),
        sector=weights_raw.get("sector", defaults.weights.sector),
        concentration=weights_raw.get("concentration", defaults.weights.concentration),
    )
    if abs(weights.total - 100.0) > 1e-9:
        logger.warning("sub-score budgets sum to %.1f, totals will be clamped to 100", weights.total)

    risks_raw = raw.get("risks") or {}
    single = risks_raw.get("single_holding") or {}
    recs = raw.get("recommendations") or {}
    risks = RiskConfig(
        single_holding_high=float(single.get("high", defaults.risks.single_holding_high)),
        single_holding_medium=float(single.get("medium", defaults.risks.single_holding_medium)),
        single_holding_max_reported=int(
            single.get("max_reported", defaults.risks.single_holding_max_reported)
        ),
        sector=_bands(risks_raw.get("sector") or {}, defaults.risks.sector),
        region=_bands(risks_raw.get("region") or {}, defaults.risks.region),
        max_reported=int(risks_raw.get("max_reported", defaults.risks.max_reported)),
        max_recommendations=int(recs.get("max_reported", defaults.risks.max_recommendations)),
        recommendation_min_bucket_percent=float(
            recs.get("min_bucket_percent", defaults.risks.recommendation_min_bucket_percent)
        ),
    )

    composite = raw.get("composite_asset_classes") or list(defaults.composite_asset_classes)
    return ScoringConfig(
        weights=weights,
        max_position_percent=validate_max_position_percent(
            raw.get("max_position_percent", defaults.max_position_percent)
        ),
        composite_asset_classes=tuple(str(c) for c in composite),
        risks=risks,
    )


def load_scoring_config(path=None) -> ScoringConfig:
    """Load scoring settings from *path*, ``$DIVERSIFICATION_CONFIG`` or the packaged defaults."""
    path = _config_path() if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scoring config not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is not None and not isinstance(raw, dict):
        raise InvalidInputError(f"{path}: expected a mapping at top level")
    logger.debug("Loaded scoring config from %s", path)
    return parse_scoring_config(raw)


def _config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)


@lru_cache(maxsize=8)
def _load_cached(path: str) -> ScoringConfig:
    return load_scoring_config(path)


def get_default_config() -> ScoringConfig:
    """Return the settings library entry points fall back to.

    Reads ``$DIVERSIFICATION_CONFIG`` on every call, so pointing the variable
    at another file takes effect immediately; each file is parsed once.
    """
    return _load_cached(str(_config_path()))
