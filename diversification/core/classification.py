"""Classification resolver: identifier + display name -> (region, sector, asset class).

The resolver walks an ordered tuple of strategies and returns the first
match.  All three labels always come from the same strategy, so a curated
dictionary entry is never partially overridden by a keyword guess.

Strategies, in default order:
  1. ExactMatch        curated dictionary, identifier as given
  2. SuffixRetry       base symbol, then base symbol + common exchange suffix
  3. KeywordHeuristic  keyword scan of identifier and display name
  4. Unclassified      sentinel triple, always matches
"""

import logging
from functools import lru_cache
from typing import Iterable, Mapping, Optional

from diversification.core.models import UNCLASSIFIED, Classification
from diversification.core.patterns import (
    ASSET_CLASS_EQUITY,
    ASSET_CLASS_PATTERNS,
    REGION_PATTERNS,
    SECTOR_DIVERSIFIED,
    SECTOR_PATTERNS,
)
from diversification.core.ticker_utils import (
    COMMON_EXCHANGE_SUFFIXES,
    base_symbol,
    normalize_symbol,
    suffix_variants,
)
from diversification.data.reference_data import load_classification_tables

logger = logging.getLogger(__name__)


def _first_match(text: str, patterns) -> Optional[str]:
    for label, keywords in patterns:
        if any(kw in text for kw in keywords):
            return label
    return None


class _DictionaryStrategy:
    """Shared lookup over the composite table, then the securities table."""

    def __init__(self, composites: Mapping[str, Classification],
                 securities: Mapping[str, Classification]):
        self.composites = composites
        self.securities = securities

    def _lookup(self, key: str) -> Optional[Classification]:
        if key in self.composites:
            return self.composites[key]
        return self.securities.get(key)


class ExactMatch(_DictionaryStrategy):
    name = "exact_match"

    def match(self, identifier: str, display_name: str) -> Optional[Classification]:
        return self._lookup(normalize_symbol(identifier))


class SuffixRetry(_DictionaryStrategy):
    name = "suffix_retry"

    def __init__(self, composites, securities, suffixes=COMMON_EXCHANGE_SUFFIXES):
        super().__init__(composites, securities)
        self.suffixes = tuple(suffixes)

    def match(self, identifier: str, display_name: str) -> Optional[Classification]:
        base = base_symbol(identifier)
        if not base:
            return None
        found = self._lookup(base)
        if found is not None:
            return found
        for candidate in suffix_variants(base, self.suffixes):
            found = self._lookup(candidate)
            if found is not None:
                return found
        return None


class KeywordHeuristic:
    """Scan the identifier and display name for region/sector/asset-class keywords.

    Without a region hit the strategy does not match at all: a holding with
    no geographic signal stays fully unclassified.
    """

    name = "keyword_heuristic"

    def __init__(self, region_patterns=REGION_PATTERNS, sector_patterns=SECTOR_PATTERNS,
                 asset_class_patterns=ASSET_CLASS_PATTERNS):
        self.region_patterns = region_patterns
        self.sector_patterns = sector_patterns
        self.asset_class_patterns = asset_class_patterns

    def match(self, identifier: str, display_name: str) -> Optional[Classification]:
        text = f"{identifier or ''} {display_name or ''}".lower()
        region = _first_match(text, self.region_patterns)
        if region is None:
            return None
        sector = _first_match(text, self.sector_patterns) or SECTOR_DIVERSIFIED
        asset_class = _first_match(text, self.asset_class_patterns) or ASSET_CLASS_EQUITY
        return Classification(region, sector, asset_class)


class Unclassified:
    name = "unclassified"

    def match(self, identifier: str, display_name: str) -> Classification:
        return Classification(UNCLASSIFIED, UNCLASSIFIED, UNCLASSIFIED)


class ClassificationResolver:
    """Resolve holdings to a classification triple.  Never raises for unknown tickers.

    Parameters
    ----------
    strategies : iterable, optional
        Objects exposing ``name`` and ``match(identifier, display_name)``.
        Defaults to the four built-in strategies over the packaged tables.
        An ``Unclassified`` strategy is appended when the sequence does not
        end with one, so ``resolve`` is total.
    """

    def __init__(self, strategies: Optional[Iterable] = None):
        if strategies is None:
            composites, securities = load_classification_tables()
            strategies = default_strategies(composites, securities)
        strategies = tuple(strategies)
        if not strategies or not isinstance(strategies[-1], Unclassified):
            strategies = strategies + (Unclassified(),)
        self.strategies = strategies

    @classmethod
    def from_tables(cls, composites: Mapping[str, Classification],
                    securities: Mapping[str, Classification]) -> "ClassificationResolver":
        def upper(table):
            return {k.strip().upper(): v for k, v in table.items()}

        return cls(default_strategies(upper(composites), upper(securities)))

    def resolve_with_source(self, identifier: str, display_name: str = "") -> tuple[Classification, str]:
        """Return ``(classification, strategy_name)`` for one holding."""
        for strategy in self.strategies:
            result = strategy.match(identifier, display_name)
            if result is not None:
                logger.debug("%s resolved via %s: %s", identifier, strategy.name, result)
                return result, strategy.name
        # Unreachable: the last strategy always matches.
        return Classification(), Unclassified.name

    def resolve(self, identifier: str, display_name: str = "") -> Classification:
        return self.resolve_with_source(identifier, display_name)[0]

    def resolve_many(self, holdings: Iterable[tuple[str, str]]) -> dict[str, Classification]:
        """Classify ``(identifier, display_name)`` pairs, keyed by identifier."""
        return {ident: self.resolve(ident, name) for ident, name in holdings}


def default_strategies(composites, securities) -> tuple:
    return (
        ExactMatch(composites, securities),
        SuffixRetry(composites, securities),
        KeywordHeuristic(),
        Unclassified(),
    )


@lru_cache(maxsize=1)
def get_default_resolver() -> ClassificationResolver:
    """Return the process-wide resolver built over the packaged tables."""
    return ClassificationResolver()


def resolve(identifier: str, display_name: str = "") -> Classification:
    """Resolve with the default resolver."""
    return get_default_resolver().resolve(identifier, display_name)
