"""
Monte Carlo search: simulated annealing with the temperature fixed at 2 and
no cooling.
"""

from __future__ import annotations

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Optional, TextIO

from .annealing import AnnealingConfig, SimulatedAnnealing
from .interfaces import DataHandler, ModelSpace
from .records import RecordPolicy, SearchRecord
from ..utils.progress import ProgressMonitor, ProgressTracker

logger = logging.getLogger(__name__)

MC_TEMPERATURE = 2.0


def monte_carlo_config(n_search: int, save: RecordPolicy = RecordPolicy.ALL, **kwargs: Any) -> AnnealingConfig:
    return AnnealingConfig(n_search=n_search, alpha=1.0, t_init=MC_TEMPERATURE, save=save, **kwargs)


def monte_carlo(
    model_space: ModelSpace,
    data_handler: DataHandler,
    n_search: int,
    sink: Optional[TextIO] = None,
    *,
    workers: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Any = None,
) -> List[SearchRecord]:
    """Sample ``n_search`` candidates and return every record, sorted by iteration."""
    logger.info("### Monte Carlo search started. (#search = %d) ###", n_search)
    config = monte_carlo_config(n_search, workers=workers, seed=seed)
    return SimulatedAnnealing(model_space, data_handler, config, sink=sink, rng=rng).run()


def monte_carlo_stream(
    model_space: ModelSpace,
    data_handler: DataHandler,
    n_search: int,
    outname: str | Path,
    *,
    workers: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Any = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Sample ``n_search`` candidates without keeping them in memory.

    Every record is appended to ``outname`` as it is processed while a
    progress monitor reports completion on ``stream`` (stdout by default).
    """
    config = monte_carlo_config(n_search, save=RecordPolicy.NONE, workers=workers, seed=seed)
    config.validate()
    logger.info(
        "### Monte Carlo search in process... (#search=%d) ### results being streamed into file %s",
        n_search,
        outname,
    )
    tracker = ProgressTracker()
    # running before either task starts, so the monitor cannot exit early
    tracker.start(0.0)
    monitor = ProgressMonitor(tracker, stream=stream if stream is not None else sys.stdout)
    with open(outname, "a", encoding="utf-8") as fout:
        searcher = SimulatedAnnealing(
            model_space,
            data_handler,
            config,
            sink=fout,
            rng=rng,
            progress=tracker,
        )
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="mc-stream") as executor:
            search_future = executor.submit(searcher.run)
            monitor_future = executor.submit(monitor.run)
            try:
                search_future.result()
            finally:
                # the driver resets the tracker on success and on failure alike
                monitor_future.result()
