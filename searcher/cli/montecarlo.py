"""
CLI handler for Monte Carlo sampling of a polynomial fit.
"""

import argparse
from pathlib import Path

from . import anneal
from ..simulation.annealing import ConfigurationError
from ..simulation.monte_carlo import monte_carlo_config, monte_carlo_stream


def register_arguments(parser: argparse.ArgumentParser):
    anneal.register_model_arguments(parser)
    parser.add_argument("--stream", action="store_true", help="Append records to --out instead of keeping them")
    parser.add_argument("--out", type=Path, default=Path("outputs/monte_carlo.log"), help="Streaming output file")


def run(args: argparse.Namespace):
    if not args.stream:
        try:
            config = monte_carlo_config(args.n_search, workers=args.workers, seed=args.seed)
            config.validate()
        except ConfigurationError as exc:
            raise SystemExit(f"Invalid search parameters: {exc}")
        return anneal.run_search(args, config, title="Monte Carlo Search")

    space, misfit = anneal.build_model(args)
    out: Path = args.out
    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        monte_carlo_stream(space, misfit, args.n_search, out, workers=args.workers, seed=args.seed)
    except ConfigurationError as exc:
        raise SystemExit(f"Invalid search parameters: {exc}")
    if not args.quiet:
        print(f"Results appended to : {out}")
