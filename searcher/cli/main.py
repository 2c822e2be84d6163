"""
Unified CLI entry point for annealing / Monte Carlo searches.
"""

import argparse
import logging
from typing import List, Optional

from . import anneal
from . import montecarlo


def setup_logging(level_str: str):
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parallel Simulated Annealing / Monte Carlo Searcher")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Sub-commands")

    # Simulated Annealing
    cmd_anneal = subparsers.add_parser("anneal", help="Simulated annealing with a cooling schedule")
    anneal.register_arguments(cmd_anneal)

    # Monte Carlo
    cmd_mc = subparsers.add_parser("monte-carlo", help="Monte Carlo sampling at fixed temperature")
    montecarlo.register_arguments(cmd_mc)
    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    # Dispatch
    if args.command == "anneal":
        anneal.run(args)
    elif args.command == "monte-carlo":
        montecarlo.run(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
