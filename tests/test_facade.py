"""Tests for the package-level entry points in diversification/__init__.py."""

import pytest

import diversification
from diversification.core.config import CONFIG_ENV_VAR
from diversification import (
    Classification,
    InvalidInputError,
    Position,
    ScoreOptions,
    compute_score,
    decompose_look_through,
    resolve_classification,
)


class TestResolveClassification:
    def test_known(self):
        assert resolve_classification("AAPL", "Apple") == Classification(
            "USA", "Technology", "Equity"
        )

    def test_unknown_never_raises(self):
        assert resolve_classification("ZZQX", "").is_unclassified

    def test_deterministic(self):
        results = {resolve_classification("IWDA.AS", "iShares Core MSCI World") for _ in range(3)}
        assert len(results) == 1


class TestComputeScore:
    def test_default_options(self):
        result = compute_score([
            Position("A", market_value=100, region="USA", sector="Technology"),
            Position("B", market_value=100, region="Europe", sector="Energy"),
        ])
        assert result.subscore("Regions").score == 18

    def test_vwce_look_through(self):
        positions = [Position("VWCE", market_value=10_000, asset_class="ETF")]
        result = compute_score(positions, ScoreOptions(max_position_percent=10,
                                                       use_look_through=True))
        assert result.subscore("Concentration").score == 17
        assert result.subscore("Regions").score < 25
        assert result.total_score == 59

    def test_vwce_nominal(self):
        positions = [Position("VWCE", market_value=10_000, asset_class="ETF")]
        assert compute_score(positions).subscore("Regions").score == 0

    def test_empty(self):
        result = compute_score([])
        assert result.total_score == 0
        assert result.coverage.total_positions == 0
        assert result.penalties == ()

    def test_idempotent(self):
        positions = [
            Position("VWCE", market_value=7_000, asset_class="ETF"),
            Position("AAPL", market_value=3_000, region="USA", sector="Technology"),
        ]
        options = ScoreOptions(use_look_through=True)
        assert compute_score(positions, options) == compute_score(positions, options)

    def test_invalid_threshold(self):
        with pytest.raises(InvalidInputError):
            compute_score([], ScoreOptions(max_position_percent=0))


class TestDecomposeLookThrough:
    def test_total_defaults_to_sum(self):
        positions = [
            Position("VWCE", market_value=5_000, asset_class="ETF"),
            Position("AAPL", market_value=5_000, region="USA", sector="Technology"),
        ]
        result = decompose_look_through(positions)
        assert result.coverage_percent == pytest.approx(50)
        usa = [b for b in result.real_geographic if b.label == "USA"][0]
        assert usa.total_value == pytest.approx(3_100 + 5_000)

    def test_explicit_total(self):
        positions = [Position("VWCE", market_value=5_000, asset_class="ETF")]
        assert decompose_look_through(positions, 10_000).coverage_percent == pytest.approx(50)



class TestConfiguredDefaults:
    @pytest.fixture
    def fund_config(self, tmp_path, monkeypatch):
        path = tmp_path / "scoring.yaml"
        path.write_text(
            "max_position_percent: 60\n"
            "composite_asset_classes: [FUND]\n"
        )
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        return path

    def test_decompose_uses_configured_composites(self, fund_config):
        result = decompose_look_through([Position("VWCE", market_value=100, asset_class="FUND")])
        assert result.has_data
        assert result.decomposed_identifiers == ("VWCE",)

    def test_etf_no_longer_composite(self, fund_config):
        result = decompose_look_through([Position("NODATA", market_value=100, asset_class="ETF")])
        assert result.non_decomposed_identifiers == ()

    def test_compute_score_threshold(self, fund_config):
        result = compute_score([
            Position("A", market_value=55, region="USA", sector="Technology"),
            Position("B", market_value=45, region="Europe", sector="Energy"),
        ])
        assert result.penalties == ()
        assert result.subscore("Concentration").description == "No holding > 60%"


def test_version():
    assert diversification.__version__
