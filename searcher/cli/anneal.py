"""
CLI handler for simulated annealing of a polynomial fit.
"""

import argparse
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Sequence

import numpy as np

from ..models.misfit import PolynomialMisfit
from ..models.vector import VectorModelSpace
from ..simulation.annealing import AnnealingConfig, ConfigurationError, SimulatedAnnealing
from ..simulation.records import RecordPolicy, SearchRecord


def register_model_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--data", type=Path, required=True, help="Two-column (x y) observation file")
    parser.add_argument("--degree", type=int, default=1, help="Polynomial degree")
    parser.add_argument("--x0", nargs="+", type=float, default=None, help="Initial coefficients (highest degree first)")
    parser.add_argument("--step", type=float, default=0.1, help="Perturbation scale")
    parser.add_argument("--lower", type=float, default=None, help="Lower bound of every coefficient")
    parser.add_argument("--upper", type=float, default=None, help="Upper bound of every coefficient")
    parser.add_argument("--n-search", type=int, default=1000, help="Number of candidates")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (default: CPU count)")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--output-dir", type=Path, default=Path("outputs"))
    parser.add_argument("--png", type=str, default=None, help="Energy/temperature plot file name")
    parser.add_argument("--quiet", action="store_true")


def register_arguments(parser: argparse.ArgumentParser):
    register_model_arguments(parser)
    parser.add_argument("--alpha", type=float, default=0.99, help="Cooling factor per candidate")
    temp = parser.add_mutually_exclusive_group()
    temp.add_argument("--t-init", type=float, default=None, help="Initial temperature")
    temp.add_argument("--t-factor", type=float, default=None, help="Initial temperature = |E0 * factor|")
    parser.add_argument("--save", choices=[p.value for p in RecordPolicy], default=RecordPolicy.ALL.value)


def build_model(args: argparse.Namespace):
    try:
        misfit = PolynomialMisfit.from_file(args.data)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"无法读取观测数据 {args.data}: {exc}")
    if args.degree < 0:
        raise SystemExit("--degree must be >= 0")
    x0 = args.x0 if args.x0 is not None else [0.0] * (args.degree + 1)
    if len(x0) != args.degree + 1:
        raise SystemExit(f"--x0 needs {args.degree + 1} coefficients for degree {args.degree}")
    # model-space stream kept distinct from the acceptance draws
    rng = np.random.default_rng(None if args.seed is None else [args.seed, 1])
    try:
        space = VectorModelSpace(x0, step=args.step, lower=args.lower, upper=args.upper, rng=rng)
    except ValueError as exc:
        raise SystemExit(str(exc))
    return space, misfit


def create_config(args: argparse.Namespace) -> AnnealingConfig:
    kwargs: Dict[str, Any] = dict(
        save=RecordPolicy(args.save),
        workers=args.workers,
        seed=args.seed,
    )
    if args.t_factor is not None:
        return AnnealingConfig.from_factor(args.n_search, args.alpha, args.t_factor, **kwargs)
    t_init = args.t_init if args.t_init is not None else 2.0
    return AnnealingConfig(n_search=args.n_search, alpha=args.alpha, t_init=t_init, **kwargs)


def save_metadata(
    records: Sequence[SearchRecord],
    searcher: SimulatedAnnealing,
    config: AnnealingConfig,
    output_dir: Path,
    extra: Dict[str, Any] | None = None,
) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    st = searcher.state
    meta = asdict(config)
    meta["save"] = config.save.value
    metadata: Dict[str, Any] = {
        "config": meta,
        "n_processed": st.n_processed,
        "n_accepted": st.n_accepted,
        "acceptance": st.acceptance,
        "final_temperature": st.temperature,
        "best_iteration": st.best_record.iteration,
        "best_energy": st.best_energy,
        "best_n_data": st.best_record.n_data,
        "best_state": np.asarray(st.best_state).tolist(),
        "n_records": len(records),
    }
    if extra:
        metadata.update(extra)
    path = output_dir / "result_summary.json"
    with path.open("w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, ensure_ascii=False)
    return path


def run_search(args: argparse.Namespace, config: AnnealingConfig, title: str) -> List[SearchRecord]:
    space, misfit = build_model(args)
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / "search.log"
    with log_path.open("w", encoding="utf-8") as sink:
        searcher = SimulatedAnnealing(space, misfit, config, sink=sink)
        try:
            records = searcher.run()
        except ConfigurationError as exc:
            raise SystemExit(f"Invalid search parameters: {exc}")

    metadata_path = save_metadata(records, searcher, config, output_dir, extra={"data": str(args.data)})
    png_path = None
    if args.png and records:
        from ..utils.visualization import plot_search_history

        png_path = plot_search_history(records, output_dir / args.png, title=title)

    if not args.quiet:
        st = searcher.state
        print(f"=== {title} ===")
        print(f"Candidates         : {st.n_processed}")
        print(f"Acceptance         : {st.acceptance:.3f}")
        print(f"Final temperature  : {st.temperature:g}")
        print(f"Best energy        : {st.best_energy:g} (search# {st.best_record.iteration})")
        print(f"Best coefficients  : {np.asarray(space.state).tolist()}")
        print(f"Records retained   : {len(records)}")
        print(f"Search log         : {log_path}")
        print(f"Metadata JSON      : {metadata_path}")
        if png_path:
            print(f"History plot       : {png_path}")
    return records


def run(args: argparse.Namespace):
    try:
        config = create_config(args)
        config.validate()
    except ConfigurationError as exc:
        raise SystemExit(f"Invalid search parameters: {exc}")
    return run_search(args, config, title="Simulated Annealing")
