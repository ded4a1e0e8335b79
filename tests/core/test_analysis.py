"""Tests for diversification/core/analysis.py."""

import pytest

from diversification.core.analysis import PortfolioAnalysis, ScoreOptions, analyze_portfolio
from diversification.core.config import CONFIG_ENV_VAR, ScoreWeights, ScoringConfig
from diversification.core.models import CompositionEntry, Position
from diversification.core.registry import CompositionRegistry


def _portfolio():
    return [
        Position("VWCE", "Vanguard FTSE All-World", 6000, asset_class="ETF",
                 region="World", sector="Diversified"),
        Position("AAPL", "Apple", 3000, region="USA", sector="Technology", asset_class="Equity"),
        Position("NODATA", "Mystery fund", 1000, asset_class="ETF"),
    ]


class TestAnalyzePortfolio:
    def test_nominal_only(self):
        analysis = analyze_portfolio(_portfolio())
        assert isinstance(analysis, PortfolioAnalysis)
        assert analysis.total_value == 10_000
        assert analysis.look_through_score is None
        assert analysis.effective_score is analysis.score
        assert analysis.look_through.has_data
        assert analysis.look_through.decomposed_identifiers == ("VWCE",)
        assert analysis.look_through.non_decomposed_identifiers == ("NODATA",)
        assert analysis.look_through.coverage_percent == pytest.approx(60)

    def test_look_through_score(self):
        analysis = analyze_portfolio(_portfolio(), ScoreOptions(use_look_through=True))
        assert analysis.look_through_score is not None
        assert analysis.effective_score is analysis.look_through_score
        nominal = analysis.score.subscore("Regions")
        real = analysis.look_through_score.subscore("Regions")
        assert real.item_count > nominal.item_count

    def test_look_through_without_data(self):
        positions = [Position("AAPL", market_value=10, region="USA", sector="Technology")]
        analysis = analyze_portfolio(positions, ScoreOptions(use_look_through=True))
        assert analysis.look_through_score is None

    def test_risks_and_recommendations(self):
        analysis = analyze_portfolio(_portfolio())
        kinds = [r.kind for r in analysis.concentration_risks]
        assert "single_holding" in kinds
        keys = [r.key for r in analysis.recommendations]
        assert "consider-bonds" in keys
        assert len(analysis.recommendations) <= 6

    def test_custom_weights(self):
        weights = ScoreWeights(asset_class=10, region=30, sector=30, concentration=30)
        analysis = analyze_portfolio(_portfolio(), ScoreOptions(weights=weights))
        assert analysis.score.subscore("Regions").max_score == 30

    def test_empty(self):
        analysis = analyze_portfolio([])
        assert analysis.score.total_score == 0
        assert analysis.look_through.has_data is False
        assert analysis.concentration_risks == ()

    def test_to_dict(self):
        data = analyze_portfolio(_portfolio(), ScoreOptions(use_look_through=True)).to_dict()
        assert data["total_value"] == 10_000
        assert data["look_through_score"]["total_score"] >= 0
        assert isinstance(data["concentration_risks"], list)


class TestLookThroughWeights:
    @pytest.fixture
    def registry(self):
        # Factsheet covers 80% of the fund
        return CompositionRegistry({
            "FUND": CompositionEntry("FUND", "Partial fund",
                                     {"USA": 50, "Japan": 30}, {"Technology": 100}),
        })

    def test_incomplete_factsheet_keeps_nominal_weights(self, registry):
        positions = [
            Position("FUND", market_value=5000, asset_class="ETF"),
            Position("AAPL", market_value=5000, region="USA", sector="Technology"),
        ]
        analysis = analyze_portfolio(
            positions,
            ScoreOptions(max_position_percent=50, use_look_through=True),
            ScoringConfig(),
            registry,
        )
        weights = dict(analysis.look_through_score.debug.holding_weights)
        assert weights["FUND"] == pytest.approx(50)
        assert weights["AAPL"] == pytest.approx(50)
        assert analysis.look_through_score.penalties == ()
        assert analysis.look_through_score.subscore("Concentration").score == 25


class TestConfiguredDefaults:
    def test_threshold_from_env_config(self, tmp_path, monkeypatch):
        path = tmp_path / "scoring.yaml"
        path.write_text("max_position_percent: 70\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        analysis = analyze_portfolio(_portfolio())
        assert analysis.options.max_position_percent == 70
        assert analysis.score.penalties == ()
        assert analysis.score.subscore("Concentration").description == "No holding > 70%"

    def test_explicit_options_win(self, tmp_path, monkeypatch):
        path = tmp_path / "scoring.yaml"
        path.write_text("max_position_percent: 70\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        analysis = analyze_portfolio(_portfolio(), ScoreOptions(max_position_percent=10))
        assert analysis.options.max_position_percent == 10
        assert analysis.score.penalties
