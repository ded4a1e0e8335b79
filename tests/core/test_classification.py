"""Tests for diversification/core/classification.py."""

import pytest

from diversification.core.classification import (
    ClassificationResolver,
    ExactMatch,
    KeywordHeuristic,
    SuffixRetry,
    Unclassified,
    get_default_resolver,
    resolve,
)
from diversification.core.models import UNCLASSIFIED, Classification
from diversification.core.patterns import ASSET_CLASS_PATTERNS


@pytest.fixture
def tables():
    composites = {
        "VWCE": Classification("World", "Diversified", "Equity"),
        "CW8.PA": Classification("World", "Diversified", "Equity"),
    }
    securities = {
        "AAPL": Classification("USA", "Technology", "Equity"),
        "MC.PA": Classification("Europe", "Consumer", "Equity"),
        "BRK.B": Classification("USA", "Financials", "Equity"),
        # Same key in both tables: the composite table wins.
        "VWCE": Classification("USA", "Technology", "Equity"),
    }
    return composites, securities


@pytest.fixture
def resolver(tables):
    return ClassificationResolver.from_tables(*tables)


# ===================================================================
# Individual strategies
# ===================================================================

class TestExactMatch:
    def test_hit_is_case_insensitive(self, tables):
        strategy = ExactMatch(*tables)
        assert strategy.match(" aapl ", "") == Classification("USA", "Technology", "Equity")

    def test_composites_checked_first(self, tables):
        strategy = ExactMatch(*tables)
        assert strategy.match("VWCE", "").region == "World"

    def test_miss(self, tables):
        assert ExactMatch(*tables).match("AAPL.L", "") is None

    def test_dotted_identifier_kept_whole(self, tables):
        assert ExactMatch(*tables).match("BRK.B", "").sector == "Financials"


class TestSuffixRetry:
    def test_base_symbol(self, tables):
        assert SuffixRetry(*tables).match("AAPL.MX", "").region == "USA"

    def test_suffix_appended(self, tables):
        # MC is only stored as MC.PA
        assert SuffixRetry(*tables).match("MC", "").region == "Europe"

    def test_suffix_order(self):
        securities = {
            "XYZ.DE": Classification("Europe", "Industrials", "Equity"),
            "XYZ.PA": Classification("Europe", "Consumer", "Equity"),
        }
        # .PA is tried before .DE
        assert SuffixRetry({}, securities).match("XYZ", "").sector == "Consumer"

    def test_miss(self, tables):
        assert SuffixRetry(*tables).match("ZZZZ", "") is None

    def test_empty_identifier(self, tables):
        assert SuffixRetry(*tables).match("", "") is None


class TestKeywordHeuristic:
    def test_region_and_defaults(self):
        result = KeywordHeuristic().match("ZZW", "Some World Fund")
        assert result == Classification("World", "Diversified", "Equity")

    def test_sector_keyword(self):
        result = KeywordHeuristic().match("ZZNQ", "Lyxor Nasdaq Technology")
        assert result == Classification("USA", "Technology", "Equity")

    def test_asset_class_keyword(self):
        result = KeywordHeuristic().match("ZZB", "Europe Government Bond")
        assert result == Classification("Europe", "Diversified", "Bonds")

    def test_first_region_pattern_wins(self):
        # "world" and "europe" both present; World is listed first
        result = KeywordHeuristic().match("ZZX", "World ex Europe")
        assert result.region == "World"

    def test_no_region_no_match(self):
        assert KeywordHeuristic().match("ZZQX", "Technology Holding") is None

    def test_french_or_is_not_a_gold_keyword(self):
        # "or " would match "factor fund" and turn it into a commodity
        result = KeywordHeuristic().match("ZZF", "Global Factor Fund")
        assert result.asset_class == "Equity"
        commodity_keywords = dict(ASSET_CLASS_PATTERNS)["Commodities"]
        assert "or " not in commodity_keywords

    def test_gold_by_english_keyword(self):
        assert KeywordHeuristic().match("ZZG", "World Gold Fund").asset_class == "Commodities"

    def test_custom_patterns(self):
        strategy = KeywordHeuristic(region_patterns=(("Mars", ("mars",)),))
        assert strategy.match("X", "Mars Colony").region == "Mars"


class TestUnclassifiedStrategy:
    def test_always_matches(self):
        result = Unclassified().match("anything", "at all")
        assert result.is_unclassified


# ===================================================================
# Resolver
# ===================================================================

class TestClassificationResolver:
    def test_exact_match_first(self, resolver):
        result, source = resolver.resolve_with_source("AAPL", "Apple Inc")
        assert source == "exact_match"
        assert result.sector == "Technology"

    def test_suffix_retry(self, resolver):
        _, source = resolver.resolve_with_source("MC", "LVMH")
        assert source == "suffix_retry"

    def test_keyword_fallback(self, resolver):
        result, source = resolver.resolve_with_source("ZZW", "Global Equity Fund")
        assert source == "keyword_heuristic"
        assert result.region == "World"

    def test_unclassified_fallback(self, resolver):
        result, source = resolver.resolve_with_source("ZZQX", "Zzqx Ltd")
        assert source == "unclassified"
        assert result == Classification(UNCLASSIFIED, UNCLASSIFIED, UNCLASSIFIED)

    def test_labels_come_from_one_strategy(self, resolver):
        # Dictionary hit keeps its own sector even if the name suggests another
        result = resolver.resolve("AAPL", "Apple Healthcare Energy")
        assert result == Classification("USA", "Technology", "Equity")

    def test_unclassified_appended(self):
        resolver = ClassificationResolver([KeywordHeuristic()])
        assert isinstance(resolver.strategies[-1], Unclassified)
        assert resolver.resolve("ZZQX", "").is_unclassified

    def test_empty_strategy_list(self):
        resolver = ClassificationResolver([])
        assert resolver.resolve("AAPL").is_unclassified

    def test_resolve_many(self, resolver):
        result = resolver.resolve_many([("AAPL", "Apple"), ("ZZQX", "")])
        assert list(result) == ["AAPL", "ZZQX"]
        assert result["ZZQX"].is_unclassified

    def test_deterministic(self, resolver):
        first = resolver.resolve("ZZNQ", "Nasdaq Tech Fund")
        for _ in range(5):
            assert resolver.resolve("ZZNQ", "Nasdaq Tech Fund") == first


class TestDefaultResolver:
    def test_packaged_tables(self):
        assert resolve("VWCE.DE") == Classification("World", "Diversified", "Equity")
        assert resolve("aapl").region == "USA"

    def test_suffix_lookup_on_packaged_data(self):
        assert resolve("MC").region == "Europe"

    def test_cached_instance(self):
        assert get_default_resolver() is get_default_resolver()
