"""Portfolio diversification engine.

The three entry points used by calling applications are defined here;
the building blocks are re-exported so that ``from diversification import
Position, score`` works without knowing the submodule layout.
"""

from typing import Iterable, Optional

from diversification.core.analysis import (  # noqa: F401
    PortfolioAnalysis,
    ScoreOptions,
    analyze_portfolio,
    resolve_options,
)
from diversification.core.allocation import aggregate, compare_exposures  # noqa: F401
from diversification.core.classification import (  # noqa: F401
    ClassificationResolver,
    get_default_resolver,
)
from diversification.core.config import (  # noqa: F401
    ScoreWeights,
    ScoringConfig,
    get_default_config,
    load_scoring_config,
)
from diversification.core.errors import DiversificationError, InvalidInputError  # noqa: F401
from diversification.core.holdings import (  # noqa: F401
    position_from_record,
    positions_from_frame,
    positions_from_records,
)
from diversification.core.look_through import build_look_through_positions, decompose
from diversification.core.models import (  # noqa: F401
    UNCLASSIFIED,
    AllocationBucket,
    Classification,
    CompositionEntry,
    Coverage,
    LookThroughResult,
    Penalty,
    Position,
    ScoreResult,
    SubScore,
)
from diversification.core.registry import (  # noqa: F401
    CompositionRegistry,
    get_default_registry,
    lookup_composition,
)
from diversification.core.scoring import score

__version__ = "0.1.0"


def resolve_classification(identifier: str, display_name: str = "") -> Classification:
    """Return the (region, sector, asset class) of a holding.  Never raises for unknown tickers."""
    return get_default_resolver().resolve(identifier, display_name)


def compute_score(
    positions: Iterable[Position],
    options: Optional[ScoreOptions] = None,
) -> ScoreResult:
    """Score *positions*, optionally on their look-through decomposition.

    With ``options.use_look_through`` composite holdings with registry data
    are replaced by their region x sector slices before scoring.  Unset
    options come from :func:`get_default_config`.
    """
    options = resolve_options(options)
    positions = list(positions)
    if options.use_look_through:
        positions = build_look_through_positions(positions)
    return score(positions, options.max_position_percent, options.weights)


def decompose_look_through(
    positions: Iterable[Position],
    total_value: Optional[float] = None,
) -> LookThroughResult:
    """Nominal vs real exposure; *total_value* defaults to the summed market value."""
    positions = list(positions)
    if total_value is None:
        total_value = sum(p.market_value for p in positions)
    return decompose(positions, total_value)
