"""Markdown formatters for diversification scores and exposure reports."""

from typing import Optional

from diversification.core.allocation import compare_exposures


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _as_dict(obj):
    """Accept either a model object or its ``to_dict()`` output."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return obj


def _fmt_pct(value: Optional[float], decimals: int = 1) -> str:
    """Format a percentage value (e.g. 12.345 -> '12.3%')."""
    if value is None:
        return "-"
    return f"{value:.{decimals}f}%"


def _fmt_pct_sign(value: Optional[float], decimals: int = 1) -> str:
    if value is None:
        return "-"
    return f"{value:+.{decimals}f}%"


def _fmt_money(value: Optional[float]) -> str:
    """Format a monetary value with thousands separators."""
    if value is None:
        return "-"
    return f"{value:,.2f}"


def _fmt_points(value) -> str:
    return f"{value:g}"


def _score_bar(score: float, max_score: float, width: int = 10) -> str:
    """Render a text bar for a sub-score."""
    if max_score <= 0:
        filled = 0
    else:
        filled = int(round(score / max_score * width))
    filled = max(0, min(filled, width))
    return "[" + "#" * filled + "." * (width - filled) + "]"


_SEVERITY_MARK = {"high": "[!!!]", "medium": "[!!]", "low": "[!]"}


# ---------------------------------------------------------------------------
# Score report
# ---------------------------------------------------------------------------

def format_score_report(result, title: str = "Diversification score") -> str:
    """Markdown report of a score with sub-scores, penalties and coverage.

    Parameters
    ----------
    result : ScoreResult or dict
        ``scoring.score()`` result or its ``to_dict()``.
    title : str
        Heading of the report.

    Returns
    -------
    str
        Markdown text.
    """
    result = _as_dict(result)
    lines: list[str] = []
    lines.append(f"## {title}")
    lines.append("")
    lines.append(f"**{result.get('total_score', 0)} / 100 ({result.get('label', '-')})**")
    lines.append("")

    lines.append("| Sub-score | Points | | HHI | Detail |")
    lines.append("|:----------|-------:|:--|----:|:-------|")
    for sub in result.get("subscores", []):
        score = sub.get("score", 0)
        max_score = sub.get("max_score", 0)
        hhi = sub.get("hhi_raw", 0)
        hhi_text = str(hhi) if sub.get("name") != "Concentration" else "-"
        lines.append(
            f"| {sub.get('name', '-')} | {score} / {_fmt_points(max_score)} "
            f"| {_score_bar(score, max_score)} | {hhi_text} | {sub.get('description', '')} |"
        )
    lines.append("")

    penalties = result.get("penalties", [])
    if penalties:
        lines.append("### Penalties")
        lines.append("")
        for p in penalties:
            lines.append(f"- **{p.get('label', '-')}** (-{_fmt_points(p.get('points', 0))} pts): "
                         f"{p.get('detail', '')}")
        lines.append("")

    coverage = result.get("coverage") or {}
    total = coverage.get("total_positions", 0)
    classified = coverage.get("classified_positions", 0)
    lines.append(
        f"Coverage: {classified}/{total} holdings classified "
        f"({_fmt_pct(coverage.get('classified_percent', 0.0), 0)})"
    )
    missing = coverage.get("unclassified_identifiers", [])
    if missing:
        lines.append(f"Unclassified: {', '.join(missing)}")
    lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Allocation tables
# ---------------------------------------------------------------------------

def format_allocation_table(title: str, buckets: list) -> str:
    """Markdown table of one allocation view.

    Parameters
    ----------
    title : str
        Section heading (e.g. "Regions").
    buckets : list
        ``AllocationBucket`` objects or their dicts, already sorted.
    """
    lines: list[str] = []
    lines.append(f"### {title}")
    lines.append("")

    if not buckets:
        lines.append("No holdings.")
        lines.append("")
        return "\n".join(lines)

    lines.append("| Label | Value | Share |")
    lines.append("|:------|------:|------:|")
    for bucket in buckets:
        b = _as_dict(bucket)
        lines.append(
            f"| {b.get('label', '-')} | {_fmt_money(b.get('total_value'))} "
            f"| {_fmt_pct(b.get('percentage_of_portfolio'))} |"
        )
    lines.append("")
    return "\n".join(lines)


def format_exposure_comparison(rows: list[dict], title: str = "Nominal vs look-through") -> str:
    """Markdown table of ``allocation.compare_exposures()`` rows."""
    lines: list[str] = []
    lines.append(f"### {title}")
    lines.append("")

    if not rows:
        lines.append("No exposure data.")
        lines.append("")
        return "\n".join(lines)

    lines.append("| Label | Nominal | Look-through | Difference |")
    lines.append("|:------|--------:|-------------:|-----------:|")
    for row in rows:
        lines.append(
            f"| {row.get('label', '-')} | {_fmt_pct(row.get('nominal_percentage'))} "
            f"| {_fmt_pct(row.get('look_through_percentage'))} "
            f"| {_fmt_pct_sign(row.get('difference'))} |"
        )
    lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Concentration risks
# ---------------------------------------------------------------------------

def format_concentration_risks(risks: list, recommendations: Optional[list] = None) -> str:
    """Markdown list of concentration risks, followed by recommendations."""
    lines: list[str] = []
    lines.append("### Concentration risks")
    lines.append("")

    if not risks:
        lines.append("No concentration risk detected.")
        lines.append("")
    else:
        for risk in risks:
            r = _as_dict(risk)
            mark = _SEVERITY_MARK.get(r.get("severity"), "")
            lines.append(f"- {mark} **{r.get('title', '-')}**: {r.get('description', '')}")
        lines.append("")

    if recommendations:
        lines.append("### Recommendations")
        lines.append("")
        for rec in recommendations:
            r = _as_dict(rec)
            lines.append(f"- **{r.get('title', '-')}** ({r.get('priority', '-')}): "
                         f"{r.get('description', '')}")
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Full analysis
# ---------------------------------------------------------------------------

def format_analysis_report(analysis) -> str:
    """Markdown report of a ``PortfolioAnalysis``.

    Sections: total value, nominal score, allocation tables, look-through
    comparison and score (when available), risks and recommendations.
    """
    lines: list[str] = []
    lines.append("# Portfolio diversification")
    lines.append("")
    lines.append(f"Total value: {_fmt_money(analysis.total_value)}")
    lines.append("")

    lines.append(format_score_report(analysis.score, title="Diversification score (nominal)"))
    lines.append(format_allocation_table("Asset classes", list(analysis.by_asset_class)))
    lines.append(format_allocation_table("Regions", list(analysis.by_region)))
    lines.append(format_allocation_table("Sectors", list(analysis.by_sector)))

    look_through = analysis.look_through
    if look_through.has_data:
        lines.append(
            f"Look-through coverage: {_fmt_pct(look_through.coverage_percent)} of the portfolio"
        )
        lines.append("")
        lines.append(format_exposure_comparison(
            compare_exposures(analysis.by_region, look_through.real_geographic),
            title="Regions: nominal vs look-through",
        ))
        lines.append(format_exposure_comparison(
            compare_exposures(analysis.by_sector, look_through.real_sectoral),
            title="Sectors: nominal vs look-through",
        ))
    if look_through.non_decomposed_identifiers:
        lines.append(
            "No composition data: " + ", ".join(look_through.non_decomposed_identifiers)
        )
        lines.append("")
    if analysis.look_through_score is not None:
        lines.append(format_score_report(
            analysis.look_through_score, title="Diversification score (look-through)"
        ))

    lines.append(format_concentration_risks(
        list(analysis.concentration_risks), list(analysis.recommendations)
    ))
    return "\n".join(lines)
