#!/usr/bin/env python3
"""
CLI for estimating Fair Market Value from a file of guesses.

Usage:
    python -m reporting.cli estimate <input_json> [--pdf OUT] [--address ADDR]

Input format:
    {
        "woz_value": 355000,
        "asking_price": 375000,
        "guesses": [
            {"guessed_price": 350000, "karma": 5},
            {"guessed_price": 360000, "karma": 1}
        ]
    }

Examples:
    python -m reporting.cli estimate guesses.json
    python -m reporting.cli estimate guesses.json --pdf reports/fmv.pdf
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from core.fmv_engine import FmvResult, WeightedGuess, estimate_fmv
from core.guesses import GuessValidationError, to_weighted_guess
from utils.config import Config
from utils.formatting import format_currency, format_percent

from .fmv_report import FmvReportGenerator


def parse_guesses_from_json(
    data: dict,
) -> Tuple[List[WeightedGuess], Optional[float], Optional[float]]:
    """
    Parse a JSON dictionary into engine inputs.

    Args:
        data: Dictionary with woz_value, asking_price and guesses

    Returns:
        Tuple of (guesses, woz_value, asking_price)

    Raises:
        GuessValidationError: If any guess is invalid
        KeyError: If a guess is missing a field
    """
    guesses = [
        to_weighted_guess(item["guessed_price"], item.get("karma", 0))
        for item in data.get("guesses", [])
    ]
    return guesses, data.get("woz_value"), data.get("asking_price")


def format_summary(result: FmvResult, currency: str = "EUR") -> str:
    """Render an FMV result as plain text lines."""
    lines = [
        f"Fair Market Value: {format_currency(result.fmv, currency)}",
        f"Confidence:        {result.confidence.value} ({result.guess_count} guesses)",
        f"WOZ value:         {format_currency(result.woz_value, currency)}",
        f"Asking price:      {format_currency(result.asking_price, currency)}",
        f"Divergence:        {format_percent(result.divergence, decimals=2, signed=True)}",
    ]
    if result.distribution:
        d = result.distribution
        lines.append(
            "Distribution:      "
            f"min {format_currency(d.min, currency)} | "
            f"p25 {format_currency(d.p25, currency)} | "
            f"p50 {format_currency(d.p50, currency)} | "
            f"p75 {format_currency(d.p75, currency)} | "
            f"max {format_currency(d.max, currency)}"
        )
    return "\n".join(lines)


def cmd_estimate(args):
    """Estimate FMV from a JSON guesses file."""
    input_path = Path(args.input_file)
    config = Config.load()

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        with open(input_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1

    try:
        guesses, woz_value, asking_price = parse_guesses_from_json(data)
    except (KeyError, GuessValidationError) as e:
        print(f"Error: Invalid guess data: {e}", file=sys.stderr)
        return 1

    result = estimate_fmv(guesses, woz_value, asking_price)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_summary(result, config.currency))

    if args.pdf:
        generator = FmvReportGenerator(currency=config.currency)
        report = generator.generate(result, args.address or input_path.stem, Path(args.pdf))
        print(f"Report generated: {report.path}")

    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Crowd FMV - Fair Market Value from price guesses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m reporting.cli estimate guesses.json
    python -m reporting.cli estimate guesses.json --json
    python -m reporting.cli estimate guesses.json --pdf reports/fmv.pdf
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    est_parser = subparsers.add_parser(
        "estimate",
        help="Estimate FMV from a JSON guesses file",
    )
    est_parser.add_argument("input_file", help="Path to JSON guesses file")
    est_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    est_parser.add_argument("--pdf", help="Also write a PDF report to this path")
    est_parser.add_argument("--address", help="Address printed on the PDF report")
    est_parser.set_defaults(func=cmd_estimate)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
