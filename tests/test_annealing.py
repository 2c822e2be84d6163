import io
import logging
import math
from typing import Any

import numpy as np
import pytest

from fakes import FailingEnergy, FailingSpace, FixedDraws, ScriptedSpace, TableEnergy
from searcher.models import PolynomialMisfit, VectorModelSpace
from searcher.simulation.annealing import (
    AnnealingConfig,
    ConfigurationError,
    SimulatedAnnealing,
    resolve_initial_temperature,
    simulated_annealing,
)
from searcher.simulation.records import Acceptance, RecordPolicy
from searcher.utils.progress import IDLE, ProgressTracker

SCENARIO = {"s0": 20.0, "a": 10.0, "b": 8.0, "c": 12.0, "d": 5.0}


def _scenario_space() -> ScriptedSpace:
    return ScriptedSpace("s0", ["a", "b", "c", "d"])


def test_single_worker_scenario_tracks_best() -> None:
    space = _scenario_space()
    records = simulated_annealing(
        space,
        TableEnergy(SCENARIO),
        n_search=4,
        alpha=1.0,
        t_init=2.0,
        save=RecordPolicy.ALL,
        workers=1,
        rng=FixedDraws([0.999]),
    )

    assert [r.iteration for r in records] == [0, 1, 2, 3, 4, 4]
    assert [r.acceptance for r in records] == [
        Acceptance.ACCEPTED,
        Acceptance.ACCEPTED,
        Acceptance.ACCEPTED,
        Acceptance.REJECTED,
        Acceptance.ACCEPTED,
        Acceptance.BEST,
    ]
    best = records[-1]
    assert best.energy == 5.0
    assert best.iteration == 4
    assert best.state == "d"
    assert all(r.temperature == 2.0 for r in records)
    # accepted a, b, d, then the final reset to the best state
    assert space.set_calls == ["a", "b", "d", "d"]
    assert space.state == "d"


def test_zero_iterations_returns_seed_and_best() -> None:
    space = ScriptedSpace("s0", [])
    energy = TableEnergy(SCENARIO)
    records = simulated_annealing(space, energy, 0, 0.9, 3.0, save=RecordPolicy.ALL, workers=2)

    assert len(records) == 2
    seed, best = records
    assert (seed.iteration, seed.acceptance) == (0, Acceptance.ACCEPTED)
    assert (best.iteration, best.acceptance) == (0, Acceptance.BEST)
    assert best.state == "s0" and best.energy == 20.0
    assert space.set_calls == ["s0"]
    assert energy.calls == 1


def test_temperature_decays_once_per_candidate() -> None:
    space = ScriptedSpace("s0", ["a", "b", "c"])
    searcher = SimulatedAnnealing(
        space,
        TableEnergy(SCENARIO),
        AnnealingConfig(n_search=3, alpha=0.5, t_init=8.0, save=RecordPolicy.ALL, workers=1),
        rng=FixedDraws([0.999]),
    )
    records = searcher.run()

    assert [r.temperature for r in records if r.acceptance is not Acceptance.BEST] == [8.0, 8.0, 4.0, 2.0]
    assert searcher.state.temperature == pytest.approx(8.0 * 0.5 ** 3)


def test_temperature_decay_independent_of_acceptance() -> None:
    table = {"s0": 0.0, "a": 100.0, "b": 200.0, "c": 300.0}
    for draw in (0.0, 0.999):
        searcher = SimulatedAnnealing(
            ScriptedSpace("s0", ["a", "b", "c"]),
            TableEnergy(table),
            AnnealingConfig(n_search=3, alpha=0.9, t_init=1.0, workers=1),
            rng=FixedDraws([draw]),
        )
        searcher.run()
        assert searcher.state.temperature == pytest.approx(0.9 ** 3)


def test_negative_t_init_scales_initial_energy() -> None:
    assert resolve_initial_temperature(3.0, 100.0) == 3.0
    assert resolve_initial_temperature(-0.5, -20.0) == 10.0

    space = ScriptedSpace("s0", [])
    config = AnnealingConfig.from_factor(0, 1.0, 0.5, save=RecordPolicy.ALL, workers=1)
    assert config.t_init == -0.5
    records = SimulatedAnnealing(space, TableEnergy(SCENARIO), config).run()
    assert records[0].temperature == 10.0


def test_zero_initial_temperature_is_logged(caplog: Any) -> None:
    table = {"s0": 0.0, "a": 0.5, "b": -1.0}
    with caplog.at_level(logging.WARNING, logger="searcher.simulation.annealing"):
        records = simulated_annealing(
            ScriptedSpace("s0", ["a", "b"]),
            TableEnergy(table),
            2,
            0.9,
            -3.0,
            save=RecordPolicy.ALL,
            workers=1,
            rng=FixedDraws([0.0]),
        )
    assert "initial temperature" in caplog.text
    assert [r.acceptance for r in records[1:3]] == [Acceptance.REJECTED, Acceptance.ACCEPTED]


def test_accepted_only_policy_drops_rejections() -> None:
    records = simulated_annealing(
        _scenario_space(),
        TableEnergy(SCENARIO),
        4,
        1.0,
        2.0,
        save=RecordPolicy.ACCEPTED_ONLY,
        workers=1,
        rng=FixedDraws([0.999]),
    )
    assert [r.iteration for r in records] == [0, 1, 2, 4, 4]
    assert Acceptance.REJECTED not in {r.acceptance for r in records}


def test_no_records_kept_but_sink_sees_everything() -> None:
    sink = io.StringIO()
    records = simulated_annealing(
        _scenario_space(),
        TableEnergy(SCENARIO),
        4,
        1.0,
        2.0,
        sink=sink,
        workers=1,
        rng=FixedDraws([0.999]),
    )
    lines = sink.getvalue().splitlines()

    assert records == []
    assert len(lines) == 6
    assert lines[0].startswith("search#   0 ")
    assert lines[0].endswith("(accepted)")
    assert lines[3].endswith("(rejected)")
    assert lines[-1].startswith("search#   4 ")
    assert lines[-1].endswith("(best)")


def test_best_keeps_first_iteration_of_equal_energy() -> None:
    table = {"s0": 9.0, "a": 5.0, "b": 5.0}
    records = simulated_annealing(
        ScriptedSpace("s0", ["a", "b"]),
        TableEnergy(table),
        2,
        1.0,
        1.0,
        save=RecordPolicy.ALL,
        workers=1,
        rng=FixedDraws([0.0]),
    )
    # the best echo sorts next to the record it repeats
    assert [(r.iteration, r.acceptance) for r in records] == [
        (0, Acceptance.ACCEPTED),
        (1, Acceptance.ACCEPTED),
        (1, Acceptance.BEST),
        (2, Acceptance.ACCEPTED),
    ]


def test_non_finite_energy_is_never_accepted() -> None:
    table = {"s0": 1.0, "a": math.inf, "b": math.nan}
    space = ScriptedSpace("s0", ["a", "b"])
    records = simulated_annealing(
        space, TableEnergy(table), 2, 1.0, 1e6, save=RecordPolicy.ALL, workers=1, rng=FixedDraws([0.0])
    )
    regular = [r for r in records if r.acceptance is not Acceptance.BEST]
    best = [r for r in records if r.acceptance is Acceptance.BEST]
    assert [r.acceptance for r in regular[1:]] == [Acceptance.REJECTED, Acceptance.REJECTED]
    assert len(best) == 1
    assert (best[0].iteration, best[0].state) == (0, "s0")
    assert space.set_calls == ["s0"]


def test_repeated_runs_are_identical() -> None:
    def _run():
        space = _scenario_space()
        records = simulated_annealing(
            space,
            TableEnergy(SCENARIO),
            4,
            0.8,
            5.0,
            save=RecordPolicy.ALL,
            workers=1,
            rng=FixedDraws([0.3, 0.9, 0.1, 0.5]),
        )
        return records, space.state

    first, first_state = _run()
    second, second_state = _run()
    assert first == second
    assert first_state == second_state


def test_parallel_run_invariants() -> None:
    rng = np.random.default_rng(7)
    x = np.linspace(-1.0, 1.0, 40)
    y = 1.5 * x - 0.3 + rng.normal(scale=0.05, size=x.size)
    misfit = PolynomialMisfit(x, y)
    space = VectorModelSpace([0.0, 0.0], step=0.2, rng=np.random.default_rng(3))
    tracker = ProgressTracker()
    n = 200

    searcher = SimulatedAnnealing(
        space,
        misfit,
        AnnealingConfig(n_search=n, alpha=0.98, t_init=2.0, save=RecordPolicy.ALL, workers=4, seed=11),
        progress=tracker,
    )
    records = searcher.run()

    assert len(records) == n + 2
    iterations = [r.iteration for r in records]
    assert iterations == sorted(iterations)
    assert sorted(r.iteration for r in records if r.acceptance is not Acceptance.BEST) == list(range(n + 1))

    best = [r for r in records if r.acceptance is Acceptance.BEST]
    assert len(best) == 1
    best = best[0]
    assert all(best.energy <= r.energy for r in records)
    assert any(
        r.iteration == best.iteration and r.energy == best.energy and r.acceptance is not Acceptance.BEST
        for r in records
    )
    assert np.array_equal(space.state, best.state)
    assert all(0 <= r.worker_id < 4 for r in records)
    assert all(r.n_data == 40 for r in records)

    assert searcher.state.n_processed == n
    assert searcher.state.temperature == pytest.approx(2.0 * 0.98 ** n)
    assert tracker.value == IDLE


def test_capability_failure_propagates_and_resets_progress() -> None:
    tracker = ProgressTracker()
    searcher = SimulatedAnnealing(
        _scenario_space(),
        FailingEnergy(SCENARIO, bad=["c", "d"]),
        AnnealingConfig(n_search=4, alpha=1.0, t_init=2.0, save=RecordPolicy.ALL, workers=1),
        rng=FixedDraws([0.999]),
        progress=tracker,
    )
    with pytest.raises(FloatingPointError):
        searcher.run()
    assert tracker.value == IDLE
    assert searcher.state.n_processed == 2


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(n_search=-1),
        dict(n_search=2.5),
        dict(alpha=0.0),
        dict(alpha=1.5),
        dict(t_init=0.0),
        dict(t_init=math.nan),
        dict(workers=0),
        dict(save="all"),
    ],
)
def test_invalid_configuration_fails_before_evaluation(kwargs: dict) -> None:
    params = dict(n_search=3, alpha=0.9, t_init=1.0, workers=1)
    params.update(kwargs)
    energy = TableEnergy(SCENARIO)
    searcher = SimulatedAnnealing(_scenario_space(), energy, AnnealingConfig(**params))
    with pytest.raises(ConfigurationError):
        searcher.run()
    assert energy.calls == 0


def test_from_factor_rejects_non_positive_factor() -> None:
    with pytest.raises(ConfigurationError):
        AnnealingConfig.from_factor(10, 0.9, 0.0)


def test_perturbation_failure_propagates_and_resets_progress() -> None:
    tracker = ProgressTracker()
    space = FailingSpace("s0", ["a"])
    searcher = SimulatedAnnealing(
        space,
        TableEnergy(SCENARIO),
        AnnealingConfig(n_search=3, alpha=1.0, t_init=2.0, workers=1),
        rng=FixedDraws([0.999]),
        progress=tracker,
    )
    with pytest.raises(ArithmeticError):
        searcher.run()
    assert tracker.value == IDLE
    assert searcher.state.n_processed == 1


def test_non_finite_scaled_temperature_is_rejected() -> None:
    table = {"s0": math.inf, "a": 1.0, "b": 50.0, "c": 1000.0}
    for seed_energy in (math.inf, math.nan):
        table["s0"] = seed_energy
        tracker = ProgressTracker()
        energy = TableEnergy(table)
        searcher = SimulatedAnnealing(
            ScriptedSpace("s0", ["a", "b", "c"]),
            energy,
            AnnealingConfig(n_search=3, alpha=0.5, t_init=-1.0, workers=1),
            rng=FixedDraws([0.999]),
            progress=tracker,
        )
        with pytest.raises(ConfigurationError, match="initial temperature"):
            searcher.run()
        assert energy.calls == 1
        assert searcher.state is None
        assert tracker.value == IDLE


def test_explicit_temperature_handles_infinite_seed_energy() -> None:
    table = {"s0": math.inf, "a": 1.0, "b": 50.0, "c": 1000.0}
    searcher = SimulatedAnnealing(
        ScriptedSpace("s0", ["a", "b", "c"]),
        TableEnergy(table),
        AnnealingConfig(n_search=3, alpha=0.5, t_init=1.0, save=RecordPolicy.ALL, workers=1),
        rng=FixedDraws([0.999]),
    )
    records = searcher.run()
    regular = [r for r in records if r.acceptance is not Acceptance.BEST]
    assert [r.acceptance for r in regular[1:]] == [
        Acceptance.ACCEPTED,
        Acceptance.REJECTED,
        Acceptance.REJECTED,
    ]
    assert searcher.state.current_energy == 1.0
    assert searcher.state.temperature == pytest.approx(0.125)


def test_worker_ids_restart_on_each_run() -> None:
    x = np.linspace(-1.0, 1.0, 20)
    space = VectorModelSpace([0.0, 0.0], step=0.2, rng=np.random.default_rng(5))
    searcher = SimulatedAnnealing(
        space,
        PolynomialMisfit(x, 2.0 * x),
        AnnealingConfig(n_search=40, alpha=0.95, t_init=1.0, save=RecordPolicy.ALL, workers=2, seed=4),
    )
    for _ in range(2):
        records = searcher.run()
        assert len(records) == 42
        assert all(0 <= r.worker_id < 2 for r in records)
