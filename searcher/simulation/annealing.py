"""
Simulated annealing over an abstract model space, evaluated by a pool of
worker threads.

Perturbation and energy evaluation of the candidates run concurrently.
Acceptance, temperature decay, best-model bookkeeping, progress and record
output are serialized behind a single lock, so every run has one consistent
timeline of processed candidates.

Temperature decays once per processed candidate in the order workers enter
the lock, not in iteration order. With more than one worker the cooling
schedule seen by a given candidate therefore depends on scheduling; only a
single-worker run is reproducible step for step.

A negative t_init scales the initial energy. When that energy is not finite
the resolved temperature would be inf or nan, so the run fails with
ConfigurationError before any candidate is evaluated.
"""

from __future__ import annotations

import copy
import itertools
import logging
import math
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, List, Optional, TextIO

import numpy as np

from .acceptance import metropolis_accept
from .interfaces import DataHandler, ModelSpace
from .records import Acceptance, RecordPolicy, SearchRecord, sort_records
from ..utils.progress import ProgressTracker

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Invalid search parameters, raised before any work is done."""


@dataclass
class AnnealingConfig:
    n_search: int
    alpha: float = 1.0          # T_current = T_last * alpha, once per candidate
    t_init: float = 2.0         # > 0: initial temperature; < 0: T0 = |E0 * t_init|
    save: RecordPolicy = RecordPolicy.NONE
    workers: Optional[int] = None
    seed: Optional[int] = None

    @classmethod
    def from_factor(cls, n_search: int, alpha: float, t_factor: float, **kwargs: Any) -> "AnnealingConfig":
        """Initial temperature anchored to the initial energy: T0 = |E0 * t_factor|."""
        if t_factor <= 0:
            raise ConfigurationError(f"t_factor must be positive, got {t_factor!r}")
        return cls(n_search=n_search, alpha=alpha, t_init=-float(t_factor), **kwargs)

    @property
    def n_workers(self) -> int:
        return self.workers if self.workers is not None else (os.cpu_count() or 1)

    def validate(self) -> None:
        if isinstance(self.n_search, bool) or not isinstance(self.n_search, (int, np.integer)):
            raise ConfigurationError(f"n_search must be an integer, got {self.n_search!r}")
        if self.n_search < 0:
            raise ConfigurationError(f"n_search must be >= 0, got {self.n_search}")
        if not 0.0 < self.alpha <= 1.0:
            raise ConfigurationError(f"alpha must be in (0, 1], got {self.alpha}")
        if self.t_init == 0.0 or not np.isfinite(self.t_init):
            raise ConfigurationError(
                f"t_init must be a positive temperature or a negative scale factor, got {self.t_init}"
            )
        if not isinstance(self.save, RecordPolicy):
            raise ConfigurationError(f"save must be a RecordPolicy, got {self.save!r}")
        if self.n_workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")


def resolve_initial_temperature(t_init: float, energy: float) -> float:
    if t_init > 0.0:
        return float(t_init)
    return abs(energy * t_init)


@dataclass
class RunState:
    current_state: Any
    current_energy: float
    temperature: float
    best_record: SearchRecord
    n_processed: int = 0
    n_accepted: int = 0
    records: List[SearchRecord] = field(default_factory=list)

    @property
    def best_state(self) -> Any:
        return self.best_record.state

    @property
    def best_energy(self) -> float:
        return self.best_record.energy

    @property
    def acceptance(self) -> float:
        return self.n_accepted / self.n_processed if self.n_processed else 0.0


class SimulatedAnnealing:
    """
    Parallel simulated-annealing driver.

    ``sink`` receives one text line per record in the order the lock
    produces them: the seed first, every processed candidate, and the best
    record last. ``rng`` supplies the uniform draws of the acceptance test;
    any object with a ``random()`` method works, the default being a numpy
    generator seeded from ``config.seed`` or OS entropy.
    """

    def __init__(
        self,
        model_space: ModelSpace,
        data_handler: DataHandler,
        config: AnnealingConfig,
        *,
        sink: Optional[TextIO] = None,
        rng: Any = None,
        progress: Optional[ProgressTracker] = None,
    ) -> None:
        self.model_space = model_space
        self.data_handler = data_handler
        self.cfg = config
        self.sink = sink
        self.rng = np.random.default_rng(config.seed) if rng is None else rng
        self.progress = ProgressTracker() if progress is None else progress
        self.state: Optional[RunState] = None
        self._lock = threading.Lock()
        self._local = threading.local()
        self._worker_counter = itertools.count()
        self._increment = 0.0

    # workers -----------------------------------------------------------------
    def _register_worker(self) -> None:
        self._local.worker_id = next(self._worker_counter)

    def _worker_id(self) -> int:
        return getattr(self._local, "worker_id", 0)

    def _emit(self, record: SearchRecord) -> None:
        if self.sink is not None:
            self.sink.write(f"{record}\n")

    def _search(self, iteration: int) -> None:
        candidate = self.model_space.perturb()
        energy, n_data = self.data_handler.energy(candidate)
        energy = float(energy)
        with self._lock:
            self._process(iteration, candidate, energy, int(n_data))

    def _process(self, iteration: int, candidate: Any, energy: float, n_data: int) -> None:
        st = self.state
        accepted = metropolis_accept(st.current_energy, energy, st.temperature, float(self.rng.random()))
        record = SearchRecord(
            iteration=iteration,
            worker_id=self._worker_id(),
            temperature=st.temperature,
            state=candidate,
            n_data=n_data,
            energy=energy,
            acceptance=Acceptance.ACCEPTED if accepted else Acceptance.REJECTED,
        )
        if accepted:
            self.model_space.set_state(candidate)
            st.current_state = candidate
            st.current_energy = energy
            st.n_accepted += 1
            best_energy = st.best_record.energy
            if energy < best_energy or not math.isfinite(best_energy):
                st.best_record = record
        logger.debug(
            "search#%d (worker %d): E=%g, T=%g, %s",
            iteration,
            record.worker_id,
            energy,
            st.temperature,
            record.acceptance.value,
        )
        st.temperature *= self.cfg.alpha
        st.n_processed += 1
        self.progress.advance(self._increment)
        self._emit(record)
        if self.cfg.save.keeps(record.acceptance):
            st.records.append(record)

    # main loop ---------------------------------------------------------------
    def run(self) -> List[SearchRecord]:
        """
        Process exactly ``config.n_search`` candidates and return the retained
        records sorted by iteration. The model space is left set to the best
        state found.
        """
        cfg = self.cfg
        cfg.validate()
        n_search = int(cfg.n_search)
        self._increment = 1.0 / (n_search + 2)
        self.progress.start(0.0)
        try:
            initial = copy.deepcopy(self.model_space.state)
            energy, n_data = self.data_handler.energy(initial)
            energy = float(energy)
            temperature = resolve_initial_temperature(cfg.t_init, energy)
            if not math.isfinite(temperature):
                raise ConfigurationError(
                    f"initial temperature resolved to {temperature} from initial energy {energy}; "
                    "give an explicit positive t_init"
                )
            if temperature <= 0.0:
                logger.warning("initial temperature resolved to %g; only improvements will be accepted", temperature)

            seed = SearchRecord(0, self._worker_id(), temperature, initial, int(n_data), energy, Acceptance.ACCEPTED)
            self.state = RunState(
                current_state=initial,
                current_energy=energy,
                temperature=temperature,
                best_record=seed,
            )
            if cfg.save.keeps_accepted:
                self.state.records.append(seed)
            self._emit(seed)
            self.progress.advance(self._increment)

            logger.info(
                "Simulated annealing started: n_search=%d, alpha=%g, T0=%g, E0=%g, workers=%d",
                n_search,
                cfg.alpha,
                temperature,
                energy,
                cfg.n_workers,
            )
            self._run_parallel(n_search, cfg.n_workers)

            best = self.state.best_record.with_acceptance(Acceptance.BEST)
            self._emit(best)
            if cfg.save.keeps_accepted:
                self.state.records.append(best)
            self.state.records = sort_records(self.state.records)
            self.model_space.set_state(best.state)

            logger.info(
                "Simulated annealing finished: best E=%g at search#%d, acceptance=%.3f, T=%g",
                best.energy,
                best.iteration,
                self.state.acceptance,
                self.state.temperature,
            )
            return list(self.state.records)
        finally:
            self.progress.reset()

    def _run_parallel(self, n_search: int, n_workers: int) -> None:
        if n_search == 0:
            return
        self._worker_counter = itertools.count()
        with ThreadPoolExecutor(
            max_workers=n_workers,
            thread_name_prefix="searcher",
            initializer=self._register_worker,
        ) as executor:
            futures = [executor.submit(self._search, i + 1) for i in range(n_search)]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            for future in done:
                exc = future.exception()
                if exc is not None:
                    raise exc


def simulated_annealing(
    model_space: ModelSpace,
    data_handler: DataHandler,
    n_search: int,
    alpha: float,
    t_init: float,
    sink: Optional[TextIO] = None,
    save: RecordPolicy = RecordPolicy.NONE,
    *,
    workers: Optional[int] = None,
    seed: Optional[int] = None,
    rng: Any = None,
    progress: Optional[ProgressTracker] = None,
) -> List[SearchRecord]:
    """
    Run one simulated-annealing search.

    t_init > 0 sets the initial temperature directly; t_init < 0 is a scale
    factor, the initial temperature becoming |E0 * t_init|.
    """
    config = AnnealingConfig(
        n_search=n_search,
        alpha=alpha,
        t_init=t_init,
        save=save,
        workers=workers,
        seed=seed,
    )
    searcher = SimulatedAnnealing(
        model_space,
        data_handler,
        config,
        sink=sink,
        rng=rng,
        progress=progress,
    )
    return searcher.run()
