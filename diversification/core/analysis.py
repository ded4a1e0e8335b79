"""Full portfolio diversification analysis.

Combines the nominal allocation views, the nominal score, the look-through
decomposition (and its score, when requested), concentration risks and
recommendations into one ``PortfolioAnalysis``.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from diversification.core.allocation import aggregate, by_asset_class, by_region, by_sector
from diversification.core.config import ScoreWeights, ScoringConfig, get_default_config
from diversification.core.look_through import build_look_through_positions, decompose
from diversification.core.models import (
    LookThroughResult,
    ScoreResult,
)
from diversification.core.registry import CompositionRegistry
from diversification.core.risks import detect_concentration_risks, generate_recommendations
from diversification.core.scoring import score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreOptions:
    """Caller options for :func:`compute_score` and :func:`analyze_portfolio`.

    ``None`` fields fall back to the scoring config in effect.
    """

    max_position_percent: Optional[float] = None
    use_look_through: bool = False
    weights: Optional[ScoreWeights] = None


def resolve_options(
    options: Optional[ScoreOptions] = None,
    config: Optional[ScoringConfig] = None,
) -> ScoreOptions:
    """Fill unset threshold and budgets from *config* (or the default config)."""
    options = options or ScoreOptions()
    if options.max_position_percent is not None and options.weights is not None:
        return options
    config = config or get_default_config()
    return replace(
        options,
        max_position_percent=(
            options.max_position_percent if options.max_position_percent is not None
            else config.max_position_percent
        ),
        weights=options.weights or config.weights,
    )


@dataclass(frozen=True)
class PortfolioAnalysis:
    total_value: float
    by_asset_class: tuple
    by_region: tuple
    by_sector: tuple
    score: ScoreResult
    look_through: LookThroughResult
    look_through_score: Optional[ScoreResult] = None
    concentration_risks: tuple = ()
    recommendations: tuple = ()
    options: ScoreOptions = field(default_factory=ScoreOptions)

    @property
    def effective_score(self) -> ScoreResult:
        """The look-through score when one was computed, else the nominal one."""
        return self.look_through_score or self.score

    def to_dict(self) -> dict:
        return {
            "total_value": self.total_value,
            "by_asset_class": [b.to_dict() for b in self.by_asset_class],
            "by_region": [b.to_dict() for b in self.by_region],
            "by_sector": [b.to_dict() for b in self.by_sector],
            "score": self.score.to_dict(),
            "look_through": self.look_through.to_dict(),
            "look_through_score": (
                self.look_through_score.to_dict() if self.look_through_score else None
            ),
            "concentration_risks": [r.to_dict() for r in self.concentration_risks],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def analyze_portfolio(
    positions: Iterable,
    options: Optional[ScoreOptions] = None,
    config: Optional[ScoringConfig] = None,
    registry: Optional[CompositionRegistry] = None,
) -> PortfolioAnalysis:
    """Run every diversification check over *positions*.

    Parameters
    ----------
    positions : iterable of Position
        Nominal holdings.
    options : ScoreOptions, optional
        Threshold, look-through switch and budgets.  Threshold and budgets
        default to ``config``.
    config : ScoringConfig, optional
        Composite asset classes and risk thresholds.  Defaults to
        :func:`~diversification.core.config.get_default_config`.
    registry : CompositionRegistry, optional
        Defaults to the packaged registry.

    Returns
    -------
    PortfolioAnalysis
        ``look_through_score`` is set only when look-through was requested
        and at least one holding could be decomposed.
    """
    config = config or get_default_config()
    options = resolve_options(options, config)
    weights = options.weights
    positions = list(positions)
    total_value = sum(p.market_value for p in positions)

    alloc_class = aggregate(positions, by_asset_class)
    alloc_region = aggregate(positions, by_region)
    alloc_sector = aggregate(positions, by_sector)

    nominal_score = score(positions, options.max_position_percent, weights)
    look_through = decompose(positions, total_value, registry, config)

    look_through_score = None
    if options.use_look_through:
        if look_through.has_data:
            synthetic = build_look_through_positions(positions, registry, config)
            look_through_score = score(synthetic, options.max_position_percent, weights)
        else:
            logger.info("look-through requested but no holding could be decomposed")

    risks = detect_concentration_risks(
        positions, alloc_region, alloc_sector, options.max_position_percent, config.risks
    )
    recommendations = generate_recommendations(risks, alloc_class, alloc_region, config.risks)

    return PortfolioAnalysis(
        total_value=total_value,
        by_asset_class=tuple(alloc_class),
        by_region=tuple(alloc_region),
        by_sector=tuple(alloc_sector),
        score=nominal_score,
        look_through=look_through,
        look_through_score=look_through_score,
        concentration_risks=tuple(risks),
        recommendations=tuple(recommendations),
        options=options,
    )
