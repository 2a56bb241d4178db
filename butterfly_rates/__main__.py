"""
CLI interface for the butterfly rates screener.

Usage:
    python -m butterfly_rates chain.json
    python -m butterfly_rates chain.json --best
    python -m butterfly_rates chain.json --chain put --csv put_chain.csv
"""

import argparse
import logging
import sys
from pathlib import Path

from butterfly_rates.analysis import analysis_to_frame
from butterfly_rates.chain import chain_to_frame
from butterfly_rates.config import ButterflyConfig, load_config
from butterfly_rates.models import OptionSide
from butterfly_rates.ranking import format_csv_output, format_strategy_report
from butterfly_rates.screener import ButterflyScreener
from butterfly_rates.snapshot import FileSnapshotSource


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="butterfly_rates",
        description="Price and rank butterfly spreads from an options-chain snapshot.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m butterfly_rates chain.json
  python -m butterfly_rates chain.json --best
  python -m butterfly_rates chain.json --max-value 15 --csv strategies.csv
  python -m butterfly_rates chain.json --chain call --json
  python -m butterfly_rates chain.json --analysis

Value%:
  The butterfly rate (lower ask - 2 x middle bid + upper ask) as a percentage
  of the first bought leg's premium. Lower is cheaper.
        """,
    )

    parser.add_argument(
        "snapshot",
        type=str,
        help="JSON file holding a chain snapshot",
    )
    parser.add_argument(
        "--expiry",
        type=str,
        help="Expiry to screen (default: first expiry in the snapshot)",
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="YAML file overriding gaps, legs and thresholds",
    )
    parser.add_argument(
        "--max-value",
        type=float,
        default=None,
        help="Maximum value%% for ranked strategies (default: 20)",
    )

    view = parser.add_mutually_exclusive_group()
    view.add_argument(
        "--best",
        action="store_true",
        help="Show only the best-trades shortlist",
    )
    view.add_argument(
        "--chain",
        choices=["call", "put"],
        help="Show the 1-2-1 rate/value matrix for one side",
    )
    view.add_argument(
        "--analysis",
        action="store_true",
        help="Show open-interest buildup signals and highlighted strikes",
    )

    parser.add_argument(
        "--csv",
        type=str,
        metavar="FILE",
        help="Write the selected view to a CSV file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output the full result as JSON to stdout",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)

    setup_logging(args.verbose, args.debug)

    try:
        config = load_config(args.config) if args.config else ButterflyConfig()

        screener = ButterflyScreener(
            source=FileSnapshotSource(args.snapshot),
            config=config,
            expiry=args.expiry,
        )
        result = screener.screen(max_value_percent=args.max_value)

        if args.json:
            print(result.to_json())
            return 0

        if args.analysis:
            if args.csv:
                analysis_to_frame(result.analysis).to_csv(args.csv, index=False)
                print(f"Results saved to {args.csv}")
            print(result.to_analysis_report())
            return 0

        if args.chain:
            side = OptionSide.parse(args.chain)
            frame = chain_to_frame(result.chain_for(side), config.gaps)
            if args.csv:
                frame.to_csv(args.csv, index=False)
                print(f"Results saved to {args.csv}")
            print(frame.to_string(index=False))
            return 0

        strategies = result.best_trades if args.best else result.strategies

        if args.csv:
            Path(args.csv).write_text(format_csv_output(strategies))
            print(f"Results saved to {args.csv}")
            print()

        if args.best:
            print(format_strategy_report(strategies, result.spot_price, title="BEST BUTTERFLY TRADES"))
        else:
            print(result.to_report())

        return 0

    except Exception as e:
        logging.exception("Error during screening")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
