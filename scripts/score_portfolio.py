#!/usr/bin/env python3
"""Score the diversification of a portfolio CSV and print a Markdown report.

The CSV holds one row per position with at least an identifier column
(``identifier``, ``ticker`` or ``symbol``) and a market value column
(``market_value``, ``value`` or ``valueEUR``).  ``name``, ``quantity``,
``region``, ``sector`` and ``asset_class`` are optional; missing labels are
filled by the classification resolver.

Usage:
    python scripts/score_portfolio.py portfolio.csv
    python scripts/score_portfolio.py portfolio.csv --look-through --max-position 15
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from diversification.core.analysis import ScoreOptions, analyze_portfolio  # noqa: E402
from diversification.core.config import load_scoring_config  # noqa: E402
from diversification.core.errors import DiversificationError  # noqa: E402
from diversification.core.holdings import positions_from_frame  # noqa: E402
from diversification.output.score_formatter import format_analysis_report  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portfolio diversification score")
    parser.add_argument("csv", help="Positions CSV (one row per position)")
    parser.add_argument(
        "--max-position", type=float, default=None,
        help="Single-holding threshold in percent (default: from config)",
    )
    parser.add_argument(
        "--look-through", action="store_true",
        help="Also score the portfolio with ETFs decomposed into their holdings",
    )
    parser.add_argument("--config", default=None, help="Scoring config YAML")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_scoring_config(args.config)
        df = pd.read_csv(args.csv)
        positions = positions_from_frame(df)
        options = ScoreOptions(
            max_position_percent=args.max_position,
            use_look_through=args.look_through,
        )
        analysis = analyze_portfolio(positions, options, config)
    except (FileNotFoundError, DiversificationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(format_analysis_report(analysis))
    return 0


if __name__ == "__main__":
    sys.exit(main())
