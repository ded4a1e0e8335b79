"""Tests for diversification/output/score_formatter.py."""

from diversification.core.allocation import aggregate, by_region, compare_exposures
from diversification.core.analysis import ScoreOptions, analyze_portfolio
from diversification.core.models import ConcentrationRisk, Position, Recommendation
from diversification.core.scoring import score
from diversification.output.score_formatter import (
    format_allocation_table,
    format_analysis_report,
    format_concentration_risks,
    format_exposure_comparison,
    format_score_report,
)


def _positions():
    return [
        Position("AAPL", "Apple", 6000, region="USA", sector="Technology", asset_class="Equity"),
        Position("SAP", "SAP", 3000, region="Europe", sector="Technology", asset_class="Equity"),
        Position("ZZQX", "", 1000),
    ]


# ===================================================================
# format_score_report
# ===================================================================

class TestFormatScoreReport:
    def test_contains_total_and_subscores(self):
        output = format_score_report(score(_positions()))
        assert "## Diversification score" in output
        assert "/ 100" in output
        for name in ("Asset classes", "Regions", "Sectors", "Concentration"):
            assert f"| {name} |" in output

    def test_penalties_listed(self):
        output = format_score_report(score(_positions()))
        assert "### Penalties" in output
        assert "AAPL > 10%" in output
        assert "AAPL represents 60.0%" in output

    def test_coverage(self):
        output = format_score_report(score(_positions()))
        assert "Coverage: 2/3 holdings classified (67%)" in output
        assert "Unclassified: ZZQX" in output

    def test_accepts_dict(self):
        output = format_score_report(score([]).to_dict(), title="Empty")
        assert "## Empty" in output
        assert "**0 / 100 (Weak)**" in output
        assert "Penalties" not in output


# ===================================================================
# Tables
# ===================================================================

class TestFormatAllocationTable:
    def test_rows(self):
        output = format_allocation_table("Regions", aggregate(_positions(), by_region))
        assert "### Regions" in output
        assert "| USA | 6,000.00 | 60.0% |" in output
        assert "| Unclassified | 1,000.00 | 10.0% |" in output

    def test_empty(self):
        assert "No holdings." in format_allocation_table("Regions", [])


class TestFormatExposureComparison:
    def test_rows(self):
        nominal = aggregate(_positions(), by_region)
        rows = compare_exposures(nominal, nominal)
        output = format_exposure_comparison(rows)
        assert "| USA | 60.0% | 60.0% | +0.0% |" in output

    def test_empty(self):
        assert "No exposure data." in format_exposure_comparison([])


class TestFormatConcentrationRisks:
    def test_no_risks(self):
        assert "No concentration risk detected." in format_concentration_risks([])

    def test_risks_and_recommendations(self):
        risk = ConcentrationRisk("sector", "high", "Sector overweight: Technology",
                                 "Too much tech.", 90.0, 40.0, ("AAPL",))
        rec = Recommendation("diversify-sector-0", "Diversify away from Technology",
                             "Add other sectors.", "high")
        output = format_concentration_risks([risk], [rec])
        assert "[!!!] **Sector overweight: Technology**" in output
        assert "### Recommendations" in output
        assert "**Diversify away from Technology** (high)" in output


# ===================================================================
# Full report
# ===================================================================

class TestFormatAnalysisReport:
    def test_nominal(self):
        output = format_analysis_report(analyze_portfolio(_positions()))
        assert output.startswith("# Portfolio diversification")
        assert "Total value: 10,000.00" in output
        assert "### Asset classes" in output
        assert "### Concentration risks" in output
        assert "look-through)" not in output

    def test_look_through_sections(self):
        positions = _positions() + [
            Position("VWCE", "All-World", 10_000, asset_class="ETF"),
            Position("NODATA", "Unknown fund", 500, asset_class="ETF"),
        ]
        output = format_analysis_report(
            analyze_portfolio(positions, ScoreOptions(use_look_through=True))
        )
        assert "Regions: nominal vs look-through" in output
        assert "Diversification score (look-through)" in output
        assert "No composition data: NODATA" in output
